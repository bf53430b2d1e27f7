from __future__ import annotations

import jax
import jax.numpy as jnp
import pytest

from se2_jit.core.vectors import Tangent3, Vector1, Vector2, Vector3


def test_vector_arithmetic():
    a = Vector3(1.0, 2.0, 3.0)
    b = Vector3(-1.0, 0.5, 2.0)

    assert jnp.allclose((a + b).flat, jnp.array([0.0, 2.5, 5.0]))
    assert jnp.allclose((a - b).flat, jnp.array([2.0, 1.5, 1.0]))
    assert jnp.allclose((-a).flat, jnp.array([-1.0, -2.0, -3.0]))
    assert jnp.allclose((2.0 * a).flat, jnp.array([2.0, 4.0, 6.0]))
    assert jnp.allclose(a.scaled(0.5).flat, jnp.array([0.5, 1.0, 1.5]))
    assert float(a.dot(b)) == pytest.approx(6.0)


def test_vector_norm():
    v = Vector2(3.0, 4.0)
    assert float(v.norm()) == pytest.approx(5.0)
    assert float(v.squared_norm()) == pytest.approx(25.0)
    assert float(Vector1(-2.0).norm()) == pytest.approx(2.0)


@pytest.mark.parametrize("cls, dim", [(Vector1, 1), (Vector2, 2), (Vector3, 3)])
def test_standard_basis_is_identity(cls, dim):
    basis = cls.standard_basis()
    assert len(basis) == dim
    stacked = jnp.stack([b.flat for b in basis])
    assert jnp.allclose(stacked, jnp.eye(dim))


def test_zero_and_from_array():
    z = Vector3.zero()
    assert jnp.allclose(z.flat, jnp.zeros(3))
    v = Vector3.from_array(jnp.array([0.1, 0.2, 0.3]))
    assert jnp.allclose(v.flat, jnp.array([0.1, 0.2, 0.3]))
    assert Tangent3 is Vector3


def test_grad_wrt_vector_is_vector():
    """Vectors are pytrees, so gradients come back with the same type."""
    def f(v: Vector2):
        return v.dot(v)

    g = jax.grad(f)(Vector2(jnp.array(1.0), jnp.array(-2.0)))
    assert isinstance(g, Vector2)
    assert jnp.allclose(g.flat, jnp.array([2.0, -4.0]))
