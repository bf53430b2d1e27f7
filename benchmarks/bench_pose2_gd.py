# Copyright (c) 2025.
# This file is part of SE2-JIT, released under the MIT License.

import math
import time

from se2_jit.core.pose2 import Pose2
from se2_jit.optimization.jit_wrappers import JittedGD
from se2_jit.optimization.solvers import GDConfig, gradient_descent
from se2_jit.slam.pose_graph import PoseGraph


def build_se2_ring_pose_graph(num_poses: int = 10) -> PoseGraph:
    """
    Ring of poses on a regular polygon with unit sides:
        pose0 --between--> pose1 --between--> ... --between--> pose0
    Prior on pose0, initial guesses slightly perturbed around ground truth.
    """
    turn = 2 * math.pi / num_poses
    graph = PoseGraph()

    # between(x[k+1], x[k]) == m  <=>  x[k+1] == x[k] * step
    step = Pose2.from_xytheta(1.0, 0.0, turn)
    m = step.inverse()
    truth = [Pose2.identity()]
    for _ in range(num_poses - 1):
        truth.append(truth[-1] * step)

    ids = []
    for i, p in enumerate(truth):
        noise = Pose2.from_xytheta(0.05 * math.sin(0.7 * i), 0.05 * math.cos(0.3 * i), 0.02 * math.sin(i))
        ids.append(graph.add_pose(p * noise))

    graph.add_prior(ids[0], Pose2.identity(), weight=1.0)
    for i in range(num_poses):
        graph.add_between(ids[i], ids[(i + 1) % num_poses], m, weight=(0.1, 0.3, 0.3))

    return graph


def run_benchmark(num_poses: int = 50, max_iters: int = 200, use_jit: bool = True):
    print("=== SE2 Gradient-Descent Benchmark (PoseGraph) ===")
    print(f"num_poses = {num_poses}, max_iters = {max_iters}, use_jit = {use_jit}")

    graph = build_se2_ring_pose_graph(num_poses)
    objective = graph.build_objective(normalizer=3.0)
    cfg = GDConfig(learning_rate=1.0, max_iters=max_iters)

    if use_jit:
        solve_once = JittedGD.from_objective(objective, cfg)
    else:
        def solve_once(x_init):
            return gradient_descent(objective, x_init, cfg)

    # Warmup: compile (and run) once
    x_warm = solve_once(graph.poses)
    x_warm[0].t.x.block_until_ready()

    # Benchmark
    t0 = time.time()
    x_opt = solve_once(graph.poses)
    x_opt[-1].t.x.block_until_ready()
    t1 = time.time()

    elapsed = t1 - t0
    print(f"Elapsed time: {elapsed * 1000:.3f} ms")

    print(f"loss (init): {float(objective(graph.poses)):.6e}")
    print(f"loss (opt):  {float(objective(x_opt)):.6e}")
    print(f"pose0 (opt):   {x_opt[0]}")
    print(f"poseN-1 (opt): {x_opt[-1]}")


if __name__ == "__main__":
    run_benchmark(num_poses=50, max_iters=200, use_jit=False)
    run_benchmark(num_poses=50, max_iters=200, use_jit=True)
