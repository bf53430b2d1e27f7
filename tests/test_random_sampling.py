from __future__ import annotations

import jax
import jax.numpy as jnp
import pytest

from se2_jit.core.pose2 import Pose2
from se2_jit.core.types import InvalidCovariance


def test_same_key_gives_same_pose():
    cov = jnp.diag(jnp.array([0.1, 1.0, 2.0]))
    a = Pose2.random_with_covariance(jax.random.PRNGKey(3), cov)
    b = Pose2.random_with_covariance(jax.random.PRNGKey(3), cov)
    c = Pose2.random_with_covariance(jax.random.PRNGKey(4), cov)

    assert jnp.array_equal(a.as_xytheta(), b.as_xytheta())
    assert not jnp.allclose(a.as_xytheta(), c.as_xytheta())


def test_zero_covariance_gives_identity():
    p = Pose2.random_with_covariance(jax.random.PRNGKey(0), jnp.zeros((3, 3)))
    assert jnp.allclose(p.as_xytheta(), jnp.zeros(3))


def test_sampled_rotation_is_normalized():
    p = Pose2.random_with_covariance(jax.random.PRNGKey(11), 4.0 * jnp.eye(3))
    assert abs(float(p.rot.c**2 + p.rot.s**2) - 1.0) <= 1e-12


def test_only_rotation_variance_leaves_translation_at_origin():
    """Σ = diag(σ², 0, 0) only perturbs the ω component."""
    p = Pose2.random_with_covariance(jax.random.PRNGKey(5), jnp.diag(jnp.array([0.5, 0.0, 0.0])))
    assert jnp.allclose(p.t.flat, jnp.zeros(2), atol=1e-15)


@pytest.mark.parametrize(
    "cov",
    [
        jnp.diag(jnp.array([1.0, -1.0, 1.0])),
        jnp.eye(2),
        jnp.ones((3, 4)),
        jnp.array([[1.0, 0.5, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]),
        jnp.full((3, 3), jnp.nan),
    ],
    ids=["not-psd", "2x2", "3x4", "not-symmetric", "nan"],
)
def test_invalid_covariance_raises(cov):
    with pytest.raises(InvalidCovariance):
        Pose2.random_with_covariance(jax.random.PRNGKey(0), cov)


def test_invalid_covariance_is_value_error():
    with pytest.raises(ValueError):
        Pose2.random_with_covariance(jax.random.PRNGKey(0), -jnp.eye(3))
