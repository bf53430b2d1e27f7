# Copyright (c) 2025.
# This file is part of SE2-JIT, released under the MIT License.
"""
SO(2) planar rotations.

A `Rot2` is stored as the unit complex number (c, s) = (cos θ, sin θ) rather
than the angle itself, so composition never needs wrap-around handling and
`theta` is always reported in (−π, π].

The tangent space is one-dimensional (angular velocity ω, a `Vector1`).
Perturbations are applied on the right, R ⊕ ω = R · Exp(ω), which is the
convention `Pose2` builds on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import jax
import jax.numpy as jnp

from .vectors import Vector1, Vector2


@jax.tree_util.register_pytree_node_class
@dataclass(frozen=True, eq=False)
class Rot2:
    c: jnp.ndarray
    s: jnp.ndarray

    TangentVector = Vector1

    def tree_flatten(self):
        return (self.c, self.s), None

    @classmethod
    def tree_unflatten(cls, aux, children):
        return cls(*children)

    @staticmethod
    def from_angle(theta) -> "Rot2":
        theta = jnp.asarray(theta, dtype=float)
        return Rot2(jnp.cos(theta), jnp.sin(theta))

    @staticmethod
    def identity() -> "Rot2":
        return Rot2(jnp.ones(()), jnp.zeros(()))

    @property
    def theta(self) -> jnp.ndarray:
        """Angle in (−π, π]; atan2(0, 0) is 0."""
        return jnp.arctan2(self.s, self.c)

    def matrix(self) -> jnp.ndarray:
        return jnp.array([[self.c, -self.s], [self.s, self.c]])

    # --- Group operations ---

    def compose(self, other: "Rot2") -> "Rot2":
        return Rot2(
            self.c * other.c - self.s * other.s,
            self.s * other.c + self.c * other.s,
        )

    def __mul__(self, other: "Rot2") -> "Rot2":
        return self.compose(other)

    def inverse(self) -> "Rot2":
        return Rot2(self.c, -self.s)

    def rotate(self, v: Vector2) -> Vector2:
        return Vector2(self.c * v.x - self.s * v.y, self.s * v.x + self.c * v.y)

    def unrotate(self, v: Vector2) -> Vector2:
        return Vector2(self.c * v.x + self.s * v.y, -self.s * v.x + self.c * v.y)

    # --- Manifold ---

    @staticmethod
    def exp(omega: Vector1) -> "Rot2":
        return Rot2.from_angle(omega.x)

    def log(self) -> Vector1:
        return Vector1(self.theta)

    def retract(self, omega: Vector1) -> "Rot2":
        return self * Rot2.exp(omega)

    def local_coordinate(self, other: "Rot2") -> Vector1:
        return (self.inverse() * other).log()

    # --- Analytic derivatives in the ω tangent ---

    def compose_jacobians(self, other: "Rot2") -> Tuple[jnp.ndarray, jnp.ndarray]:
        """d(self · other) w.r.t. self and other; SO(2) is abelian so both are 1."""
        one = jnp.ones((1, 1))
        return one, one

    def rotate_jacobians(self, v: Vector2) -> Tuple[jnp.ndarray, jnp.ndarray]:
        """
        Jacobians of `rotate(v)`:
          - w.r.t. ω (2x1): the rotated point turned by 90 degrees, (−ry, rx)
          - w.r.t. v (2x2): the rotation matrix
        """
        r = self.rotate(v)
        d_omega = jnp.array([[-r.y], [r.x]])
        return d_omega, self.matrix()
