# Copyright (c) 2025.
# This file is part of SE2-JIT, released under the MIT License.
"""
Fixed-size real vectors used as points and tangent vectors.

`Vector1`, `Vector2` and `Vector3` are immutable JAX pytrees whose fields are
scalars (Python floats or 0-d arrays). Because they are pytrees, `jax.grad`
with respect to a `Vector3` returns a `Vector3`, which is how tangent-space
gradients of `Pose2` are represented.

Each vector space is its own tangent space, so retraction on these types is
plain addition.

`Tangent3` is an alias of `Vector3`; for `Pose2` its components are ordered
(ω, vx, vy): rotation first, then translation.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import List, Tuple, TypeVar

import jax
import jax.numpy as jnp

V = TypeVar("V", bound="_VectorN")


class _VectorN:
    """Arithmetic shared by the fixed-size vectors."""

    def components(self) -> Tuple:
        return tuple(getattr(self, f.name) for f in fields(self))

    def tree_flatten(self):
        return self.components(), None

    @classmethod
    def tree_unflatten(cls, aux, children):
        return cls(*children)

    @classmethod
    def dimension(cls) -> int:
        return len(fields(cls))

    @classmethod
    def zero(cls: type[V]) -> V:
        return cls(*(jnp.zeros(()) for _ in range(cls.dimension())))

    @classmethod
    def standard_basis(cls: type[V]) -> List[V]:
        """Unit vectors in field order."""
        n = cls.dimension()
        return [cls.from_array(row) for row in jnp.eye(n)]

    @classmethod
    def from_array(cls: type[V], a: jnp.ndarray) -> V:
        a = jnp.asarray(a)
        assert a.shape == (cls.dimension(),), f"expected shape ({cls.dimension()},), got {a.shape}"
        return cls(*(a[i] for i in range(cls.dimension())))

    @property
    def flat(self) -> jnp.ndarray:
        return jnp.stack([jnp.asarray(c, dtype=float) for c in self.components()])

    def __add__(self: V, other: V) -> V:
        return type(self)(*(a + b for a, b in zip(self.components(), other.components())))

    def __sub__(self: V, other: V) -> V:
        return type(self)(*(a - b for a, b in zip(self.components(), other.components())))

    def __neg__(self: V) -> V:
        return type(self)(*(-a for a in self.components()))

    def scaled(self: V, s) -> V:
        return type(self)(*(s * a for a in self.components()))

    def __mul__(self: V, s) -> V:
        return self.scaled(s)

    __rmul__ = __mul__

    def dot(self: V, other: V) -> jnp.ndarray:
        return sum(a * b for a, b in zip(self.components(), other.components()))

    def squared_norm(self) -> jnp.ndarray:
        return self.dot(self)

    def norm(self) -> jnp.ndarray:
        return jnp.sqrt(self.squared_norm())


@jax.tree_util.register_pytree_node_class
@dataclass(frozen=True, eq=False)
class Vector1(_VectorN):
    x: jnp.ndarray


@jax.tree_util.register_pytree_node_class
@dataclass(frozen=True, eq=False)
class Vector2(_VectorN):
    x: jnp.ndarray
    y: jnp.ndarray


@jax.tree_util.register_pytree_node_class
@dataclass(frozen=True, eq=False)
class Vector3(_VectorN):
    x: jnp.ndarray
    y: jnp.ndarray
    z: jnp.ndarray


Tangent3 = Vector3
