from __future__ import annotations

import math

import jax
import jax.numpy as jnp
import pytest

from se2_jit.core.pose2 import SMALL_ANGLE_EPS, Pose2, Pose2Coordinate
from se2_jit.core.rot2 import Rot2
from se2_jit.core.vectors import Vector2, Vector3


def _random_pose(seed: int) -> Pose2:
    return Pose2.random_with_covariance(jax.random.PRNGKey(seed), jnp.eye(3))


@pytest.mark.parametrize("seed", range(10))
def test_manifold_identity(seed):
    """retract(p, localCoordinate(p, q)) == q."""
    p = _random_pose(100 + 2 * seed)
    q = _random_pose(101 + 2 * seed)

    actual = Pose2.from_coordinate(p.coordinate.retract(p.coordinate.local_coordinate(q.coordinate)))

    for a, e in [(actual.rot.c, q.rot.c), (actual.rot.s, q.rot.s), (actual.t.x, q.t.x), (actual.t.y, q.t.y)]:
        assert float(a) == pytest.approx(float(e), abs=1e-10)


def test_manifold_expmap1():
    """Values from GTSAM testPose2.cpp, tangent in (omega, vx, vy) order."""
    pose = Pose2(Rot2.from_angle(math.pi / 2), Vector2(1.0, 2.0))
    expected = Pose2.from_xytheta(1.00811, 2.01528, 2.5608)

    actual = Pose2.from_coordinate(pose.coordinate.retract(Vector3(0.99, 0.01, -0.015)))

    assert float(actual.rot.theta) == pytest.approx(float(expected.rot.theta), abs=1e-5)
    assert float(actual.t.x) == pytest.approx(float(expected.t.x), abs=1e-5)
    assert float(actual.t.y) == pytest.approx(float(expected.t.y), abs=1e-5)


def test_manifold_expmap_periodic():
    expected = Pose2.from_xytheta(0, 0, 0)
    actual = Pose2.from_coordinate(
        Pose2.from_xytheta(0, 0, 0).coordinate.retract(Vector3(2 * math.pi, 0.0, 2 * math.pi))
    )

    assert float(actual.rot.theta) == pytest.approx(float(expected.rot.theta), abs=1e-5)
    assert float(actual.t.x) == pytest.approx(0.0, abs=1e-5)
    assert float(actual.t.y) == pytest.approx(0.0, abs=1e-5)


def test_exp_of_pure_translation():
    p = Pose2.exp(Vector3(0.0, 1.5, -0.5))
    assert jnp.allclose(p.as_xytheta(), jnp.array([1.5, -0.5, 0.0]), atol=1e-15)


def test_exp_log_round_trip_across_angles():
    for omega in [0.0, 1e-12, 5e-10, 1e-6, 0.3, -2.0, 3.0, math.pi]:
        xi = Vector3(omega, 0.7, -1.2)
        back = Pose2.exp(xi).log()
        assert jnp.allclose(back.flat, xi.flat, atol=1e-10), omega


def test_log_near_pi_is_finite():
    p = Pose2.from_xytheta(0.3, -0.4, math.pi - 1e-13)
    xi = p.log()
    assert bool(jnp.all(jnp.isfinite(xi.flat)))
    q = Pose2.from_xytheta(0.3, -0.4, -math.pi)
    assert bool(jnp.all(jnp.isfinite(q.log().flat)))


def test_small_angle_branch_is_continuous():
    """Values just inside and just outside the Taylor branch agree."""
    inside = Pose2.exp(Vector3(0.5 * SMALL_ANGLE_EPS, 1.0, 2.0))
    outside = Pose2.exp(Vector3(2.0 * SMALL_ANGLE_EPS, 1.0, 2.0))
    assert jnp.allclose(inside.as_xytheta(), outside.as_xytheta(), atol=1e-9)


def test_exp_and_log_gradients_finite_at_zero():
    def f(xi):
        return jnp.sum(Pose2.exp(xi).log().flat ** 2)

    g = jax.grad(f)(Vector3.zero())
    assert bool(jnp.all(jnp.isfinite(g.flat)))

    def h(xi):
        p = Pose2.exp(xi)
        return p.t.x + p.t.y

    g = jax.grad(h)(Vector3.zero())
    assert jnp.allclose(g.flat, jnp.array([0.0, 1.0, 1.0]), atol=1e-12)


def test_coordinate_and_value_share_storage():
    p = Pose2.from_xytheta(1.0, 2.0, 0.5)
    c = p.coordinate
    assert isinstance(c, Pose2Coordinate)
    assert c.rot is p.rot and c.t is p.t
    q = Pose2.from_coordinate(c)
    assert jnp.allclose(q.as_xytheta(), p.as_xytheta())


def test_retract_zero_is_identity_map():
    p = Pose2.from_xytheta(-1.0, 0.25, 2.0)
    q = p.retract(Vector3.zero())
    assert jnp.allclose(q.as_xytheta(), p.as_xytheta(), atol=1e-15)
