# Copyright (c) 2025.
# This file is part of SE2-JIT, released under the MIT License.
"""
Manifold utilities for SE(2) and Euclidean values in SE2-JIT.

This module centralizes the bookkeeping that lets a generic optimizer take
gradients in a flat tangent space while the *state* lives on a manifold
(SE(2) for poses, SO(2) for bare rotations, ℝⁿ for vectors and arrays).

The helpers work on arbitrary pytrees. A pytree node is treated as a single
manifold value when it is one of the geometric types below; everything else
is recursed into, and plain array leaves are Euclidean.

    value type          tangent     retract(x, δ)
    ---------------     -------     -------------
    Pose2               Vector3     x · Exp(δ)
    Pose2Coordinate     Vector3     x · Exp(δ)
    Rot2                Vector1     x · Exp(δ)
    Vector1/2/3         same type   x + δ
    array / float       array       x + δ

Primitives
----------
    • `zero_tangents(tree)`            tangent tree of zeros
    • `retract(tree, tangent)`         slot-wise retraction
    • `local_coordinate(a, b)`         slot-wise inverse of `retract`
    • `tangent_dim(tree)`              total tangent dimension
    • `manifold_summary(tree)`         counts per manifold label

Integration with the optimizer
------------------------------
`optimization.autodiff` differentiates `f(retract(x, δ))` at δ = 0 to get
tangent-space gradients, and `optimization.solvers.gradient_descent` uses
`retract` to apply its updates. Neither needs to know which slots are poses.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict

import jax
import jax.numpy as jnp

from ..core.pose2 import Pose2, Pose2Coordinate
from ..core.rot2 import Rot2
from ..core.vectors import Vector1, Vector2, Vector3

LIE_GROUP_TYPES = (Pose2, Pose2Coordinate, Rot2)
VECTOR_TYPES = (Vector1, Vector2, Vector3)

TYPE_TO_MANIFOLD: Dict[type, str] = {
    Pose2: "se2",
    Pose2Coordinate: "se2",
    Rot2: "so2",
    Vector1: "euclidean",
    Vector2: "euclidean",
    Vector3: "euclidean",
}


def is_manifold_value(x: Any) -> bool:
    return isinstance(x, LIE_GROUP_TYPES + VECTOR_TYPES)


def get_manifold_for_value(x: Any) -> str:
    return TYPE_TO_MANIFOLD.get(type(x), "euclidean")


def _zero_tangent(x):
    if isinstance(x, (Pose2, Pose2Coordinate)):
        return Vector3.zero()
    if isinstance(x, Rot2):
        return Vector1.zero()
    if isinstance(x, VECTOR_TYPES):
        return type(x).zero()
    return jnp.zeros_like(jnp.asarray(x, dtype=float))


def _retract(x, delta):
    if isinstance(x, LIE_GROUP_TYPES):
        return x.retract(delta)
    return x + delta


def _local_coordinate(a, b):
    if isinstance(a, LIE_GROUP_TYPES):
        return a.local_coordinate(b)
    return b - a


def zero_tangents(tree: Any) -> Any:
    """Tangent tree of zeros, with each manifold value replaced by its tangent type."""
    return jax.tree_util.tree_map(_zero_tangent, tree, is_leaf=is_manifold_value)


def retract(tree: Any, tangent: Any) -> Any:
    """Apply `tangent` to `tree` slot by slot. Structures and leaf shapes must match."""
    expected = zero_tangents(tree)
    assert jax.tree_util.tree_structure(tangent) == jax.tree_util.tree_structure(
        expected
    ), "tangent does not match the parameter's tangent structure"
    for t, e in zip(jax.tree_util.tree_leaves(tangent), jax.tree_util.tree_leaves(expected)):
        assert jnp.shape(t) == jnp.shape(e), f"tangent leaf of shape {jnp.shape(t)}, expected {jnp.shape(e)}"
    return jax.tree_util.tree_map(_retract, tree, tangent, is_leaf=is_manifold_value)


def local_coordinate(a: Any, b: Any) -> Any:
    """Tangent δ at `a` such that retract(a, δ) == b."""
    return jax.tree_util.tree_map(_local_coordinate, a, b, is_leaf=is_manifold_value)


def tangent_dim(tree: Any) -> int:
    return sum(jnp.size(leaf) for leaf in jax.tree_util.tree_leaves(zero_tangents(tree)))


def manifold_summary(tree: Any) -> Dict[str, int]:
    """How many values of each manifold kind a parameter tree holds."""
    values = jax.tree_util.tree_leaves(tree, is_leaf=is_manifold_value)
    return dict(Counter(get_manifold_for_value(v) for v in values))
