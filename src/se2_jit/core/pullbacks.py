# Copyright (c) 2025.
# This file is part of SE2-JIT, released under the MIT License.
"""
Analytic derivatives of the SE(2) primitives.

JAX differentiates everything in this package automatically; this module
exposes the closed-form derivatives as well, both as Jacobian matrices and
as explicit pullback closures. Each `*_with_pullback` function returns

    (value, pullback)

where `pullback` maps a cotangent of the output (expressed in the output's
tangent basis) to cotangents of the inputs. Composite operations build their
pullback by chaining the closures of the primitives they are made of, so no
tape is involved.

Jacobians are in the (ω, vx, vy) basis with right perturbations:

    compose(a, b):  ∂/∂a = Ad(b⁻¹),  ∂/∂b = I
    inverse(p):     ∂/∂p = −Ad(p)
    between(a, b):  ∂/∂a = −Ad(between(a, b)⁻¹),  ∂/∂b = I

A pullback is the transpose of its Jacobian applied to the cotangent.
"""

from __future__ import annotations

from typing import Callable, Tuple

import jax.numpy as jnp

from .pose2 import Pose2
from .rot2 import Rot2
from .vectors import Vector1, Vector2, Vector3

Pullback2 = Callable[[Vector3], Tuple[Vector3, Vector3]]


# --- Jacobians ---

def compose_jacobians(a: Pose2, b: Pose2) -> Tuple[jnp.ndarray, jnp.ndarray]:
    return b.inverse().adjoint_matrix(), jnp.eye(3)


def inverse_jacobian(p: Pose2) -> jnp.ndarray:
    return -p.adjoint_matrix()


def between_jacobians(a: Pose2, b: Pose2) -> Tuple[jnp.ndarray, jnp.ndarray]:
    return -a.between(b).inverse().adjoint_matrix(), jnp.eye(3)


# --- Pullbacks ---

def compose_with_pullback(a: Pose2, b: Pose2) -> Tuple[Pose2, Pullback2]:
    b_inv = b.inverse()

    def pullback(g: Vector3) -> Tuple[Vector3, Vector3]:
        return b_inv.adjoint_transpose(g), g

    return a * b, pullback


def inverse_with_pullback(p: Pose2) -> Tuple[Pose2, Callable[[Vector3], Vector3]]:
    def pullback(g: Vector3) -> Vector3:
        return -p.adjoint_transpose(g)

    return p.inverse(), pullback


def between_with_pullback(a: Pose2, b: Pose2) -> Tuple[Pose2, Pullback2]:
    """between(a, b) = inverse(a) · b, differentiated through both closures."""
    a_inv, pb_inverse = inverse_with_pullback(a)
    value, pb_compose = compose_with_pullback(a_inv, b)

    def pullback(g: Vector3) -> Tuple[Vector3, Vector3]:
        g_a_inv, g_b = pb_compose(g)
        return pb_inverse(g_a_inv), g_b

    return value, pullback


def rot_compose_with_pullback(
    a: Rot2, b: Rot2
) -> Tuple[Rot2, Callable[[Vector1], Tuple[Vector1, Vector1]]]:
    def pullback(g: Vector1) -> Tuple[Vector1, Vector1]:
        return g, g

    return a * b, pullback


def rotate_with_pullback(
    r: Rot2, v: Vector2
) -> Tuple[Vector2, Callable[[Vector2], Tuple[Vector1, Vector2]]]:
    value = r.rotate(v)

    def pullback(g: Vector2) -> Tuple[Vector1, Vector2]:
        # d/dω of R·Exp(ω)·v at 0 is (−ry, rx); d/dv is R, so its transpose unrotates.
        return Vector1(-g.x * value.y + g.y * value.x), r.unrotate(g)

    return value, pullback


def retract_with_pullback(
    c: Pose2, xi: Vector3
) -> Tuple[Pose2, Callable[[Vector3], Vector3]]:
    """
    Retraction with the pullback w.r.t. the tangent argument.

    The identity pullback is exact at ξ = 0, which is the only point where
    the gradient machinery evaluates it.
    """
    def pullback(g: Vector3) -> Vector3:
        return g

    return c.retract(xi), pullback
