# Copyright (c) 2025.
# This file is part of SE2-JIT, released under the MIT License.
"""
SE(2) rigid motions for SE2-JIT.

This module implements the planar Lie-group mathematics required for
differentiable pose-graph optimization:

    • Composition, inversion and `between`
    • se(2) exponential & logarithm maps
    • Left adjoint Ad(p) and its transpose, component-wise
    • Taylor branches for stable values and derivatives near ω = 0
    • Seeded sampling around the identity from a tangent covariance

Tangent convention
------------------
Tangent vectors are `Vector3` with components ordered (ω, vx, vy): rotation
first, then translation. Every Jacobian and adjoint in this package is
expressed in that basis. Some references (GTSAM among them) order the same
quantities as (vx, vy, ω); their matrices are a permutation of ours.

Perturbations are applied on the right:

    retract(p, ξ) = p · Exp(ξ)
    localCoordinate(p, q) = Log(p⁻¹ · q)

Value vs. coordinate
--------------------
`Pose2Coordinate` carries the chart-dependent math (exp, log, retract,
localCoordinate and the generic adjoint). `Pose2` is the value-level type
users compose and pass to optimizers; it shares the same (rot, t) storage and
delegates the chart math to `Pose2.coordinate`.

Key Functions
-------------
Pose2Coordinate.exp(ξ)
    Maps a twist (ω, vx, vy) to a pose.

Pose2Coordinate.log()
    Inverse of exp; ω is recovered from the rotation in (−π, π].

between(a, b)
    a⁻¹ · b, computed in closed form.

Pose2.adjoint(v), Pose2.adjoint_transpose(v)
    Ad(p) v and Ad(p)ᵀ v without forming the 3x3 matrix.
"""

from __future__ import annotations

from dataclasses import dataclass

import jax
import jax.numpy as jnp

from .rot2 import Rot2
from .types import InvalidCovariance
from .vectors import Vector2, Vector3

# Below this |ω| the exp/log coefficients switch to their Taylor expansions.
SMALL_ANGLE_EPS = 1e-10


def _integration_coefficients(omega: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """
    Coefficients of the SE(2) integration Jacobian V(ω) = [[a, −b], [b, a]]:

        a = sin(ω) / ω
        b = (1 − cos(ω)) / ω = 2 sin²(ω/2) / ω
    """
    small = jnp.abs(omega) < SMALL_ANGLE_EPS
    # Keep the unselected branch finite so its gradient cannot leak NaNs.
    safe = jnp.where(small, 1.0, omega)
    half_sin = jnp.sin(0.5 * safe)
    a = jnp.where(small, 1.0 - omega**2 / 6.0, jnp.sin(safe) / safe)
    b = jnp.where(small, 0.5 * omega - omega**3 / 24.0, 2.0 * half_sin * half_sin / safe)
    return a, b


def _inverse_integration_coefficient(omega: jnp.ndarray) -> jnp.ndarray:
    """
    Diagonal of V(ω)⁻¹ = [[α, ω/2], [−ω/2, α]] with α = (ω/2) / tan(ω/2).
    """
    small = jnp.abs(omega) < SMALL_ANGLE_EPS
    safe = jnp.where(small, 1.0, omega)
    half = 0.5 * safe
    return jnp.where(small, 1.0 - omega**2 / 12.0, half * jnp.cos(half) / jnp.sin(half))


@jax.tree_util.register_pytree_node_class
@dataclass(frozen=True, eq=False)
class Pose2Coordinate:
    """Chart-local coordinate of a planar pose: rotation and translation."""
    rot: Rot2
    t: Vector2

    def tree_flatten(self):
        return (self.rot, self.t), None

    @classmethod
    def tree_unflatten(cls, aux, children):
        return cls(*children)

    @staticmethod
    def identity() -> "Pose2Coordinate":
        return Pose2Coordinate(Rot2.identity(), Vector2.zero())

    # --- Group operations ---

    def compose(self, other: "Pose2Coordinate") -> "Pose2Coordinate":
        return Pose2Coordinate(self.rot * other.rot, self.t + self.rot.rotate(other.t))

    def __mul__(self, other: "Pose2Coordinate") -> "Pose2Coordinate":
        return self.compose(other)

    def inverse(self) -> "Pose2Coordinate":
        return Pose2Coordinate(self.rot.inverse(), self.rot.unrotate(-self.t))

    def between(self, other: "Pose2Coordinate") -> "Pose2Coordinate":
        return Pose2Coordinate(
            self.rot.inverse() * other.rot,
            self.rot.unrotate(other.t - self.t),
        )

    # --- Exponential / logarithm ---

    @staticmethod
    def exp(xi: Vector3) -> "Pose2Coordinate":
        omega, vx, vy = xi.x, xi.y, xi.z
        a, b = _integration_coefficients(omega)
        t = Vector2(a * vx - b * vy, b * vx + a * vy)
        return Pose2Coordinate(Rot2.from_angle(omega), t)

    def log(self) -> Vector3:
        omega = self.rot.theta
        alpha = _inverse_integration_coefficient(omega)
        half = 0.5 * omega
        tx, ty = self.t.x, self.t.y
        return Vector3(omega, alpha * tx + half * ty, -half * tx + alpha * ty)

    def retract(self, xi: Vector3) -> "Pose2Coordinate":
        return self * Pose2Coordinate.exp(xi)

    def local_coordinate(self, other: "Pose2Coordinate") -> Vector3:
        return self.between(other).log()

    # --- Adjoint ---

    def adjoint_matrix(self) -> jnp.ndarray:
        c, s = self.rot.c, self.rot.s
        tx, ty = self.t.x, self.t.y
        return jnp.array(
            [
                [1.0, 0.0, 0.0],
                [ty, c, -s],
                [-tx, s, c],
            ]
        )

    def adjoint(self, v: Vector3) -> Vector3:
        c, s = self.rot.c, self.rot.s
        tx, ty = self.t.x, self.t.y
        omega, vx, vy = v.x, v.y, v.z
        return Vector3(
            omega,
            ty * omega + c * vx - s * vy,
            -tx * omega + s * vx + c * vy,
        )

    def adjoint_transpose(self, v: Vector3) -> Vector3:
        c, s = self.rot.c, self.rot.s
        tx, ty = self.t.x, self.t.y
        omega, vx, vy = v.x, v.y, v.z
        return Vector3(
            omega + ty * vx - tx * vy,
            c * vx + s * vy,
            -s * vx + c * vy,
        )

    def _conjugate_log(self, xi: Vector3) -> Vector3:
        return (self * Pose2Coordinate.exp(xi) * self.inverse()).log()

    def default_adjoint(self, v: Vector3) -> Vector3:
        """Ad(p) v as the derivative of ξ ↦ Log(p · Exp(ξ) · p⁻¹) at 0."""
        _, out = jax.jvp(self._conjugate_log, (Vector3.zero(),), (v,))
        return out

    def default_adjoint_transpose(self, v: Vector3) -> Vector3:
        """Ad(p)ᵀ v as the pullback of the conjugation map at 0."""
        _, vjp_fn = jax.vjp(self._conjugate_log, Vector3.zero())
        (out,) = vjp_fn(v)
        return out


@jax.tree_util.register_pytree_node_class
@dataclass(frozen=True, eq=False)
class Pose2:
    """
    Planar pose: rotation `rot` followed by translation `t`.

    Use `Pose2(rot, t)` or `Pose2.from_xytheta(x, y, theta)`.
    """
    rot: Rot2
    t: Vector2

    TangentVector = Vector3

    def tree_flatten(self):
        return (self.rot, self.t), None

    @classmethod
    def tree_unflatten(cls, aux, children):
        return cls(*children)

    # --- Construction ---

    @staticmethod
    def from_xytheta(x, y, theta) -> "Pose2":
        return Pose2(
            Rot2.from_angle(theta),
            Vector2(jnp.asarray(x, dtype=float), jnp.asarray(y, dtype=float)),
        )

    @staticmethod
    def from_array(v: jnp.ndarray) -> "Pose2":
        """From a flat [x, y, theta] array."""
        v = jnp.asarray(v)
        return Pose2.from_xytheta(v[0], v[1], v[2])

    @staticmethod
    def identity() -> "Pose2":
        return Pose2(Rot2.identity(), Vector2.zero())

    @staticmethod
    def from_coordinate(coordinate: Pose2Coordinate) -> "Pose2":
        return Pose2(coordinate.rot, coordinate.t)

    @property
    def coordinate(self) -> Pose2Coordinate:
        return Pose2Coordinate(self.rot, self.t)

    @staticmethod
    def random_with_covariance(key: jax.Array, covariance) -> "Pose2":
        """
        Draw ξ ~ N(0, Σ) in the tangent space at the identity and return
        Exp(ξ). The same key always yields the same pose.

        Needs a concrete covariance, so it is not meant to be called under
        `jax.jit`.
        """
        cov = jnp.asarray(covariance, dtype=float)
        if cov.shape != (3, 3):
            raise InvalidCovariance(f"Covariance must be 3x3, got shape {cov.shape}")
        if not bool(jnp.all(jnp.isfinite(cov))):
            raise InvalidCovariance("Covariance contains non-finite entries")
        scale = max(1.0, float(jnp.max(jnp.abs(cov))))
        if not bool(jnp.allclose(cov, cov.T, atol=1e-12 * scale)):
            raise InvalidCovariance("Covariance is not symmetric")

        eigvals, eigvecs = jnp.linalg.eigh(cov)
        if float(jnp.min(eigvals)) < -1e-12 * scale:
            raise InvalidCovariance(
                f"Covariance is not positive semi-definite (min eigenvalue {float(jnp.min(eigvals)):.3e})"
            )
        sqrt_cov = eigvecs * jnp.sqrt(jnp.clip(eigvals, 0.0))
        xi = sqrt_cov @ jax.random.normal(key, (3,), dtype=cov.dtype)
        return Pose2.identity().retract(Vector3.from_array(xi))

    # --- Group operations ---

    def compose(self, other: "Pose2") -> "Pose2":
        return Pose2.from_coordinate(self.coordinate.compose(other.coordinate))

    def __mul__(self, other: "Pose2") -> "Pose2":
        return self.compose(other)

    def inverse(self) -> "Pose2":
        return Pose2.from_coordinate(self.coordinate.inverse())

    def between(self, other: "Pose2") -> "Pose2":
        return Pose2.from_coordinate(self.coordinate.between(other.coordinate))

    def adjoint_matrix(self) -> jnp.ndarray:
        return self.coordinate.adjoint_matrix()

    def adjoint(self, v: Vector3) -> Vector3:
        return self.coordinate.adjoint(v)

    def adjoint_transpose(self, v: Vector3) -> Vector3:
        return self.coordinate.adjoint_transpose(v)

    # --- Manifold (delegated to the coordinate) ---

    @staticmethod
    def exp(xi: Vector3) -> "Pose2":
        return Pose2.from_coordinate(Pose2Coordinate.exp(xi))

    def log(self) -> Vector3:
        return self.coordinate.log()

    def retract(self, xi: Vector3) -> "Pose2":
        return Pose2.from_coordinate(self.coordinate.retract(xi))

    def local_coordinate(self, other: "Pose2") -> Vector3:
        return self.coordinate.local_coordinate(other.coordinate)

    # --- Conversions ---

    def as_xytheta(self) -> jnp.ndarray:
        return jnp.stack(
            [
                jnp.asarray(self.t.x, dtype=float),
                jnp.asarray(self.t.y, dtype=float),
                self.rot.theta,
            ]
        )

    def __repr__(self) -> str:
        return f"Pose2(x={self.t.x}, y={self.t.y}, theta={self.rot.theta})"


def compose(a: Pose2, b: Pose2) -> Pose2:
    return a.compose(b)


def inverse(p: Pose2) -> Pose2:
    return p.inverse()


def between(a: Pose2, b: Pose2) -> Pose2:
    """a⁻¹ · b: the pose of `b` expressed in the frame of `a`."""
    return a.between(b)
