from __future__ import annotations

import jax.numpy as jnp
import pytest

from se2_jit.core.pose2 import Pose2, between
from se2_jit.core.rot2 import Rot2
from se2_jit.core.vectors import Vector1, Vector2, Vector3
from se2_jit.optimization.autodiff import jacobian, pullback, ravel_tangent, value_with_gradient
from se2_jit.slam.manifold import tangent_dim


def _between_loss(pts):
    d = between(pts[0], pts[1])
    return d.rot.theta ** 2 + d.t.squared_norm()


def test_gradient_of_pose_is_tangent_vector():
    p = Pose2.from_xytheta(1.0, 2.0, 0.3)

    value, grad = value_with_gradient(p, lambda x: x.t.x)

    assert float(value) == pytest.approx(1.0)
    assert isinstance(grad, Vector3)
    # d/dξ of (p·Exp(ξ)).t.x at 0 is the first row of R in the (vx, vy) slots.
    assert jnp.allclose(grad.flat, jnp.array([0.0, jnp.cos(0.3), -jnp.sin(0.3)]), atol=1e-12)


def test_gradient_over_pose_list_keeps_structure():
    pts = [Pose2.from_xytheta(0.0, 0.0, 0.0), Pose2.from_xytheta(1.0, 1.0, 1.0)]

    value, grad = value_with_gradient(pts, _between_loss)

    assert float(value) > 0.0
    assert isinstance(grad, list) and len(grad) == 2
    assert all(isinstance(g, Vector3) for g in grad)


def test_pullback_zero_gradient_for_identical_poses():
    """A squared distance between equal poses is stationary."""
    p = Pose2.from_xytheta(0.4, -1.3, 2.2)

    value, pb = pullback([p, p], _between_loss)
    grads = pb(jnp.array(1.0))

    assert float(value) == pytest.approx(0.0, abs=1e-20)
    for g in grads:
        assert jnp.allclose(g.flat, jnp.zeros(3), atol=1e-12)


def test_pullback_of_pose_output_takes_tangent_cotangent():
    p = Pose2.from_xytheta(0.4, -1.3, 2.2)
    value, pb = pullback(p, lambda x: x.inverse())

    assert jnp.allclose(value.as_xytheta(), p.inverse().as_xytheta())
    g = pb(Vector3.standard_basis()[0])
    assert isinstance(g, Vector3)
    assert jnp.allclose(g.flat, -p.adjoint_matrix()[0], atol=1e-12)


def test_gradient_over_mixed_tree():
    params = {
        "pose": Pose2.from_xytheta(1.0, 0.0, 0.5),
        "rot": Rot2.from_angle(-0.2),
        "offset": Vector2(0.3, -0.1),
        "scale": jnp.array(2.0),
    }

    def f(x):
        moved = x["pose"].t + x["rot"].rotate(x["offset"])
        return x["scale"] * moved.squared_norm()

    _, grad = value_with_gradient(params, f)

    assert isinstance(grad["pose"], Vector3)
    assert isinstance(grad["rot"], Vector1)
    assert isinstance(grad["offset"], Vector2)
    assert grad["scale"].shape == ()
    assert tangent_dim(params) == 3 + 1 + 2 + 1


def test_euclidean_gradient_matches_plain_grad():
    x = jnp.array([1.0, -2.0, 0.5])
    _, grad = value_with_gradient(x, lambda v: jnp.sum(v ** 3))
    assert jnp.allclose(grad, 3 * x ** 2)


def test_jacobian_shape_and_ravel_tangent():
    pts = [Pose2.from_xytheta(0.0, 0.0, 0.0), Pose2.from_xytheta(1.0, 1.0, 1.0)]

    jac = jacobian(lambda x: between(x[0], x[1]), pts)

    assert jac.shape == (3, 6)
    flat, unravel = ravel_tangent([Vector3(1.0, 2.0, 3.0), Vector3(4.0, 5.0, 6.0)])
    assert flat.shape == (6,)
    back = unravel(flat)
    assert jnp.allclose(back[1].flat, jnp.array([4.0, 5.0, 6.0]))
