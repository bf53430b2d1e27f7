# Copyright (c) 2025.
# This file is part of SE2-JIT, released under the MIT License.
"""
Residual models (measurement factors) for SE2-JIT.

Each function here implements a residual

    r(poses; params) ∈ ℝᵏ

over the `Pose2` values a factor touches, written in JAX so the pose-graph
objective can be differentiated and jitted. Factor types in a
`slam.pose_graph.PoseGraph` ("between", "between_geodesic", "prior") are
mapped to these functions via `PoseGraph.register_residual`.

Relative-pose factors
---------------------
A factor (i, j, m) asserts that between(x[j], x[i]) should equal m. Its
error pose is

    e = between(between(x[j], x[i]), m)

which is the identity when the measurement is met exactly.

    • `between_residual`:
        r = (θ, tx, ty) of e. Cheap and smooth near the identity; this is
        the residual of the documented square-loop workload.

    • `between_geodesic_residual`:
        r = Log(e) ∈ se(2), (ω, vx, vy).

Priors
------
    • `prior_residual`:
        r = localCoordinate(target, x) = Log(target⁻¹ · x).

Weighting
---------
`params["weight"]` is an information weight, scalar or per-component:
the residual is scaled by √w so that the objective term is Σ wₖ rₖ².
`sigma_to_weight` converts standard deviations into such weights.
"""

from __future__ import annotations
from typing import Dict, Sequence

import jax.numpy as jnp

from ..core.pose2 import Pose2, between


def _apply_weight(residual: jnp.ndarray, params: dict, key: str = "weight") -> jnp.ndarray:
    """
    Optional weighting of residuals.

    If params[key] is:
      - missing: no change
      - scalar:  r' = sqrt(w) * r
      - vector:  r'[k] = sqrt(w[k]) * r[k]
    """
    w = params.get(key, None)
    if w is None:
        return residual

    w = jnp.asarray(w, dtype=float)
    return jnp.sqrt(w) * residual


def sigma_to_weight(sigma):
    """
    Convert standard deviation sigma (or vector of sigmas) to a weight usable
    by _apply_weight:

        w = 1 / sigma^2
    """
    s = jnp.asarray(sigma, dtype=float)
    return 1.0 / (s * s)


def between_error(pose_i: Pose2, pose_j: Pose2, measurement: Pose2) -> Pose2:
    """Identity when between(pose_j, pose_i) equals `measurement`."""
    return between(between(pose_j, pose_i), measurement)


def between_residual(poses: Sequence[Pose2], params: Dict[str, jnp.ndarray]) -> jnp.ndarray:
    """
    Relative-pose residual on (theta, x, y) of the error pose.

    poses: (pose_i, pose_j)
    params:
        "measurement": Pose2
        "weight": optional information weight (scalar or length 3)
    """
    assert len(poses) == 2, "between_residual expects two poses."
    e = between_error(poses[0], poses[1], params["measurement"])
    r = jnp.stack([e.rot.theta, jnp.asarray(e.t.x, dtype=float), jnp.asarray(e.t.y, dtype=float)])
    return _apply_weight(r, params)


def between_geodesic_residual(poses: Sequence[Pose2], params: Dict[str, jnp.ndarray]) -> jnp.ndarray:
    """
    Relative-pose residual in se(2): Log of the error pose, (omega, vx, vy).
    """
    assert len(poses) == 2, "between_geodesic_residual expects two poses."
    e = between_error(poses[0], poses[1], params["measurement"])
    return _apply_weight(e.log().flat, params)


def prior_residual(poses: Sequence[Pose2], params: Dict[str, jnp.ndarray]) -> jnp.ndarray:
    """
    Prior anchoring a single pose:
        residual = Log(target^-1 * pose)
    """
    assert len(poses) == 1, "prior_residual expects one pose."
    r = params["target"].local_coordinate(poses[0]).flat
    return _apply_weight(r, params)
