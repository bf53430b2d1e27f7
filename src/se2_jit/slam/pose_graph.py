# Copyright (c) 2025.
# This file is part of SE2-JIT, released under the MIT License.
"""
Planar pose graph for SE2-JIT.

This module ties the pieces of the package into the pose-graph SLAM
workload: a sequence of `Pose2` variables, a list of factors over them, and
registered residual functions that turn the factors into one scalar
objective for `optimization.solvers.gradient_descent`.

The PoseGraph stores:
    - poses: the current estimate, one `Pose2` per node
    - factors: constraints between poses (see `core.types.Factor`)
    - residual_fns: factor type -> residual function

Primary Methods
---------------
add_pose(pose)
    Append a pose and return its NodeId.

add_between(i, j, measurement, weight)
    Relative-pose factor asserting between(x[j], x[i]) ≈ measurement.

add_prior(i, target, weight)
    Anchor a pose to a target.

build_objective(normalizer)
    f(poses) = Σ_factors ||r||² / normalizer, as a function of a pose
    sequence so it can be differentiated in the tangent space.

optimize(cfg)
    Gradient descent from the current poses; returns a new PoseGraph.

loop_closure_error(first, last)
    ||between(x[last], x[first]).t||.

The graph object is plain Python and mutable while it is being built; the
objective it produces is a pure function of the pose sequence.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Sequence

import jax.numpy as jnp
from loguru import logger

from ..core.pose2 import Pose2, between
from ..core.types import Factor, NodeId
from ..optimization.solvers import GDConfig, gradient_descent
from .measurements import between_geodesic_residual, between_residual, prior_residual

ResidualFn = Callable[[Sequence[Pose2], Dict[str, jnp.ndarray]], jnp.ndarray]

DEFAULT_RESIDUALS: Dict[str, ResidualFn] = {
    "between": between_residual,
    "between_geodesic": between_geodesic_residual,
    "prior": prior_residual,
}


@dataclass
class PoseGraph:
    """
    Pose graph over a sequence of `Pose2`.

    - poses: current estimate, indexed by NodeId
    - factors: constraints in insertion order
    - residual_fns: mapping factor.type -> callable computing residuals
    """
    poses: List[Pose2] = field(default_factory=list)
    factors: List[Factor] = field(default_factory=list)
    residual_fns: Dict[str, ResidualFn] = field(default_factory=lambda: dict(DEFAULT_RESIDUALS))

    def add_pose(self, pose: Pose2) -> NodeId:
        self.poses.append(pose)
        return NodeId(len(self.poses) - 1)

    def add_factor(self, factor: Factor) -> None:
        for nid in factor.var_ids:
            if not 0 <= nid < len(self.poses):
                raise ValueError(f"Factor '{factor.type}' references unknown pose {nid}")
        self.factors.append(factor)

    def add_between(
        self,
        i: NodeId,
        j: NodeId,
        measurement: Pose2,
        weight=None,
        geodesic: bool = False,
    ) -> None:
        params = {"measurement": measurement}
        if weight is not None:
            params["weight"] = jnp.asarray(weight, dtype=float)
        f_type = "between_geodesic" if geodesic else "between"
        self.add_factor(Factor(type=f_type, var_ids=(i, j), params=params))

    def add_prior(self, i: NodeId, target: Pose2, weight=None) -> None:
        params = {"target": target}
        if weight is not None:
            params["weight"] = jnp.asarray(weight, dtype=float)
        self.add_factor(Factor(type="prior", var_ids=(i,), params=params))

    def register_residual(self, factor_type: str, fn: ResidualFn) -> None:
        self.residual_fns[factor_type] = fn

    # --- Objective ---

    def build_residual_function(self) -> Callable[[Sequence[Pose2]], jnp.ndarray]:
        """
        Returns r(poses) -> stacked residual vector over all factors.
        """
        # Freeze the factor list inside the closure
        factors = tuple(self.factors)
        residual_fns = dict(self.residual_fns)

        def residual(poses: Sequence[Pose2]) -> jnp.ndarray:
            res_list = []
            for factor in factors:
                residual_fn = residual_fns.get(factor.type, None)
                if residual_fn is None:
                    raise ValueError(f"No residual fn registered for factor type '{factor.type}'")
                vs = [poses[nid] for nid in factor.var_ids]
                res_list.append(jnp.reshape(residual_fn(vs, factor.params), (-1,)))

            if not res_list:
                return jnp.zeros((0,))

            return jnp.concatenate(res_list)

        return residual

    def build_objective(self, normalizer: float = 1.0) -> Callable[[Sequence[Pose2]], jnp.ndarray]:
        """
        Returns f(poses) -> scalar loss = ||r(poses)||^2 / normalizer.
        """
        residual = self.build_residual_function()

        def objective(poses: Sequence[Pose2]) -> jnp.ndarray:
            r = residual(poses)
            return jnp.sum(r ** 2) / normalizer

        return objective

    # --- Solving ---

    def optimize(self, cfg: GDConfig, normalizer: float = 1.0) -> "PoseGraph":
        """Run gradient descent from the current poses; the graph itself is unchanged."""
        objective = self.build_objective(normalizer)
        poses = gradient_descent(objective, list(self.poses), cfg)
        logger.info(f"Pose graph solved: final loss={float(objective(poses)):.8f}")
        return replace(self, poses=list(poses), factors=list(self.factors))

    def loop_closure_error(self, first: int = 0, last: int = -1) -> float:
        return float(between(self.poses[last], self.poses[first]).t.norm())


def square_loop_example(initial_poses: Optional[Sequence[Pose2]] = None) -> PoseGraph:
    """
    Five poses around a closed square of side 2.

    The four relative measurements are (2, 0, 0) followed by three quarter
    turns (2, 0, π/2), weighted (0.1, 0.3, 0.3) on (θ, x, y). With the
    default noisy initialization, 400 descent steps on loss / 3 close the
    loop between the last and the first pose.
    """
    if initial_poses is None:
        initial_poses = [
            Pose2.from_xytheta(0.5, 0.0, 0.2),
            Pose2.from_xytheta(2.3, 0.1, -0.2),
            Pose2.from_xytheta(4.1, 0.1, math.pi / 2),
            Pose2.from_xytheta(4.0, 2.0, math.pi),
            Pose2.from_xytheta(2.1, 2.1, -math.pi / 2),
        ]

    graph = PoseGraph()
    ids = [graph.add_pose(p) for p in initial_poses]

    weight = (0.1, 0.3, 0.3)
    measurements = [
        Pose2.from_xytheta(2.0, 0.0, 0.0),
        Pose2.from_xytheta(2.0, 0.0, math.pi / 2),
        Pose2.from_xytheta(2.0, 0.0, math.pi / 2),
        Pose2.from_xytheta(2.0, 0.0, math.pi / 2),
    ]
    for k, m in enumerate(measurements):
        graph.add_between(ids[k], ids[k + 1], m, weight=weight)

    return graph
