# experiments/exp01_pose2_square_loop.py

import argparse

from se2_jit.optimization.solvers import GDConfig
from se2_jit.slam.pose_graph import square_loop_example


def main():
    """
    Planar pose-graph loop closure by first-order descent.

    Five poses are initialized near a closed square of side 2 and linked by
    four relative measurements. Gradient descent in the tangent space
    (400 steps, alpha = 1, loss / 3) should bring the last pose back onto
    the first one.
    """
    parser = argparse.ArgumentParser(description="SE(2) square-loop pose graph")
    parser.add_argument("--iters", type=int, default=400)
    parser.add_argument("--log-every", type=int, default=50)
    parser.add_argument("--plot", action="store_true", help="show initial vs optimized poses")
    args = parser.parse_args()

    graph = square_loop_example()
    objective = graph.build_objective(normalizer=3.0)

    print("=== Initial estimate ===")
    for k, p in enumerate(graph.poses):
        print(f"  x{k}: {p}")
    print(f"  loss = {float(objective(graph.poses)):.6f}")
    print(f"  loop-closure error = {graph.loop_closure_error():.6f}")

    cfg = GDConfig(learning_rate=1.0, max_iters=args.iters, log_every=args.log_every)
    solved = graph.optimize(cfg, normalizer=3.0)

    print("=== Optimized estimate ===")
    for k, p in enumerate(solved.poses):
        print(f"  x{k}: {p}")
    print(f"  loss = {float(objective(solved.poses)):.6f}")
    print(f"  loop-closure error = {solved.loop_closure_error():.6f}")

    if args.plot:
        import matplotlib.pyplot as plt

        from se2_jit.world.visualization import plot_poses_2d

        ax = plot_poses_2d(graph.poses, graph.factors, color="tab:gray", show_labels=False)
        plot_poses_2d(solved.poses, graph.factors, ax=ax, color="tab:blue", title="Square loop: initial (gray) vs optimized")
        plt.show()


if __name__ == "__main__":
    main()
