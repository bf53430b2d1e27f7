# Copyright (c) 2025.
# This file is part of SE2-JIT, released under the MIT License.
"""
Core typed data structures for SE2-JIT.

This module defines the lightweight containers shared by the geometry and
pose-graph layers. They hold structure only; every numerical operation is
done by JAX functions elsewhere.

Classes
-------
Factor
    A constraint between one or more pose slots. A factor contains:
    - type: String key selecting a residual function
    - var_ids: Ordered indices into the pose sequence
    - params: Measurement, weights and any other residual parameters

InvalidCovariance
    Raised when a covariance handed to random sampling is not a finite,
    symmetric, positive semi-definite 3x3 matrix.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, NewType

NodeId = NewType("NodeId", int)


class InvalidCovariance(ValueError):
    """Covariance matrix cannot be used to draw tangent samples."""


@dataclass
class Factor:
    """Constraint connecting pose slots of a pose graph."""
    type: str          # e.g. "between", "between_geodesic", "prior"
    var_ids: tuple[NodeId, ...]
    params: Dict[str, Any]  # measurement, weight, etc.
