# Copyright (c) 2025.
# This file is part of SE2-JIT, released under the MIT License.
"""
Tangent-space reverse-mode differentiation.

`jax.grad` applied directly to a function of `Pose2` would return cotangents
of the storage, i.e. of (c, s, tx, ty). What an optimizer on SE(2) needs is
the gradient in the (ω, vx, vy) tangent space at the current pose. The entry
points here get it by differentiating through the retraction at a zero
tangent:

    ∇f(x) = d/dδ f(retract(x, δ)) |δ=0

Outputs that are themselves manifold values are read through their local
coordinate at the primal output, so cotangents of a `Pose2` output are
`Vector3`s in the same basis.

Every trace is created and consumed within one call; nothing is cached
between calls.

Key Functions
-------------
value_with_gradient(param, f)
    (f(param), tangent gradient). `param` may be a `Pose2`, a list of them,
    or any pytree mixing poses, rotations, vectors and arrays.

pullback(param, f)
    (f(param), cotangent_out ↦ tangent cotangent of `param`).

jacobian(f, at)
    Rows stacked in the tangent-basis order of the output, columns in the
    flattened tangent order of the input.
"""

from __future__ import annotations

from typing import Any, Callable, Tuple

import jax
import jax.numpy as jnp
from jax.flatten_util import ravel_pytree

from ..slam.manifold import local_coordinate, retract, zero_tangents


def value_with_gradient(param: Any, f: Callable[[Any], jnp.ndarray]) -> Tuple[jnp.ndarray, Any]:
    """
    Value of a scalar function and its gradient in the tangent space of `param`.

    The gradient has the structure of `param` with every `Pose2` replaced by
    its 3D tangent (ω, vx, vy).
    """
    def local(delta):
        return f(retract(param, delta))

    return jax.value_and_grad(local)(zero_tangents(param))


def pullback(param: Any, f: Callable[[Any], Any]) -> Tuple[Any, Callable[[Any], Any]]:
    """
    Primal output and the pullback of `f` at `param`.

    The returned closure takes a cotangent shaped like the *tangent* of the
    output (e.g. a `Vector3` when `f` returns a `Pose2`, a scalar when it
    returns a scalar) and gives the tangent-space cotangent of `param`.
    """
    def local(delta):
        out = f(retract(param, delta))
        return local_coordinate(jax.lax.stop_gradient(out), out), out

    _, vjp_fn, value = jax.vjp(local, zero_tangents(param), has_aux=True)

    def pb(cotangent: Any) -> Any:
        (g,) = vjp_fn(cotangent)
        return g

    return value, pb


def jacobian(f: Callable[[Any], Any], at: Any) -> jnp.ndarray:
    """
    Jacobian of `f` at `at` in tangent coordinates.

    Row i is the pullback of the i-th standard basis cotangent of the output,
    flattened.
    """
    value, pb = pullback(at, f)
    out_zero, unravel = ravel_pytree(zero_tangents(value))
    rows = [ravel_pytree(pb(unravel(e)))[0] for e in jnp.eye(out_zero.size, dtype=out_zero.dtype)]
    return jnp.stack(rows)


def ravel_tangent(tangent: Any) -> Tuple[jnp.ndarray, Callable[[jnp.ndarray], Any]]:
    """Flat view of a tangent tree plus the inverse map."""
    return ravel_pytree(tangent)
