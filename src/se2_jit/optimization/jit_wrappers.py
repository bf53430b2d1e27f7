# Copyright (c) 2025.
# This file is part of SE2-JIT, released under the MIT License.
"""
JIT-friendly optimization wrappers for SE2-JIT.

`solvers.gradient_descent` compiles a single iteration and drives the loop
from Python, which keeps per-iteration logging simple. When the same
objective is solved repeatedly (benchmarks, multiple initializations), the
whole loop can be compiled once instead. `JittedGD` does that with
`jax.lax.fori_loop`, so a solve is a single XLA call.

Typical usage::

    objective = graph.build_objective(normalizer=3.0)
    cfg = GDConfig(learning_rate=1.0, max_iters=400)
    solve = JittedGD.from_objective(objective, cfg)
    poses_opt = solve(graph.poses)

The parameter structure (e.g. the number of poses) is fixed at the first
call; a different structure triggers a recompile.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import jax
import jax.numpy as jnp

from ..utils import jax_log
from .solvers import GDConfig, gd_step


@dataclass
class JittedGD:
    """
    Simple wrapper holding a jitted gradient-descent solve for a fixed objective.

    Usage:
        jgd = JittedGD.from_objective(objective, cfg)
        x_opt = jgd(x0)
    """
    fn: Callable[[Any], Any]
    cfg: GDConfig

    def __call__(self, x0: Any) -> Any:
        return self.fn(x0)

    @staticmethod
    def from_objective(
        objective: Callable[[Any], jnp.ndarray],
        cfg: GDConfig,
    ) -> "JittedGD":
        # cfg is closed over and treated as static.
        def body(i, x):
            x_next, value = gd_step(objective, x, cfg.learning_rate)
            if cfg.log_every > 0:
                jax.lax.cond(
                    i % cfg.log_every == 0,
                    lambda: jax_log("  step #{}: loss={}", i, value),
                    lambda: None,
                )
            return x_next

        def solve(x0: Any) -> Any:
            # Python-float leaves would give the loop carry a weak dtype.
            x0 = jax.tree_util.tree_map(lambda a: jnp.asarray(a, dtype=float), x0)
            return jax.lax.fori_loop(0, cfg.max_iters, body, x0)

        return JittedGD(fn=jax.jit(solve), cfg=cfg)
