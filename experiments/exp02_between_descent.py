# experiments/exp02_between_descent.py

import jax.numpy as jnp

from se2_jit.core.pose2 import Pose2, between
from se2_jit.core.rot2 import Rot2
from se2_jit.core.vectors import Vector2
from se2_jit.optimization.autodiff import jacobian, value_with_gradient
from se2_jit.optimization.solvers import GDConfig, gradient_descent_history


def main():
    """
    Drive one pose onto another by descending the squared between error.

    loss(p) = (theta^2 + x^2 + y^2) / 10 of between(p, target); the gradient is
    taken in the (omega, vx, vy) tangent space and applied with the retraction.
    """
    target = Pose2(Rot2.from_angle(1.0), Vector2(1.0, 1.0))
    p0 = Pose2(Rot2.from_angle(0.0), Vector2(1.0, 0.0))

    def loss(p):
        d = between(p, target)
        return (d.rot.theta ** 2 + d.t.squared_norm()) / 10

    value, grad = value_with_gradient(p0, loss)
    print(f"initial loss = {float(value):.6f}")
    print(f"tangent gradient (omega, vx, vy) = {grad.flat}")

    print("d between / d lhs at the start:")
    print(jnp.round(jacobian(lambda p: between(p, target), p0), 6))

    p, losses = gradient_descent_history(loss, p0, GDConfig(learning_rate=1.0, max_iters=100))

    for k in (0, 10, 50, 99):
        print(f"  iter {k:3d}: loss = {losses[k]:.3e}")
    print(f"final pose:  {p}")
    print(f"target pose: {target}")
    print(f"theta error = {abs(float(p.rot.theta - target.rot.theta)):.2e}")


if __name__ == "__main__":
    main()
