# Copyright (c) 2025.
# This file is part of SE2-JIT, released under the MIT License.
"""
SE2-JIT: differentiable planar rigid motions and first-order pose-graph
optimization in JAX.

The Jacobian contracts of the geometry layer are checked at 1e-10, so JAX is
switched to 64-bit mode here, before any submodule creates an array.
"""

from __future__ import annotations

import jax

jax.config.update("jax_enable_x64", True)

from .core.types import InvalidCovariance  # noqa: E402
from .core.vectors import Tangent3, Vector1, Vector2, Vector3  # noqa: E402
from .core.rot2 import Rot2  # noqa: E402
from .core.pose2 import Pose2, Pose2Coordinate, between, compose, inverse  # noqa: E402
from .slam.manifold import local_coordinate, retract, zero_tangents  # noqa: E402
from .optimization.autodiff import jacobian, pullback, value_with_gradient  # noqa: E402
from .optimization.solvers import GDConfig, gradient_descent  # noqa: E402

__all__ = [
    "InvalidCovariance",
    "Vector1",
    "Vector2",
    "Vector3",
    "Tangent3",
    "Rot2",
    "Pose2",
    "Pose2Coordinate",
    "between",
    "compose",
    "inverse",
    "retract",
    "local_coordinate",
    "zero_tangents",
    "value_with_gradient",
    "pullback",
    "jacobian",
    "GDConfig",
    "gradient_descent",
]
