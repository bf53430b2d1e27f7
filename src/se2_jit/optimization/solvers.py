# Copyright (c) 2025.
# This file is part of SE2-JIT, released under the MIT License.
"""
First-order manifold solvers for SE2-JIT.

The solver here takes a differentiable scalar objective over an arbitrary
parameter tree (a `Pose2`, a list of poses, poses mixed with vectors, ...)
and runs fixed-step gradient descent in the tangent space:

    1. (v, g) ← value_with_gradient(x, f)
    2. x ← retract(x, −α · g)          slot by slot

The update for each `Pose2` is applied on the manifold, x · Exp(−α g), so
poses never leave SE(2). Euclidean slots are updated additively. There is no
line search and no convergence test: the loop runs exactly `max_iters`
iterations and callers judge convergence on the returned state.

Key Concepts
------------
GDConfig
    Dataclass holding configuration for gradient descent:
    - learning_rate: step size α (1.0 for objectives that are already scaled)
    - max_iters: number of iterations
    - log_every: log the loss every N iterations through loguru (0 = off)

gradient_descent(objective, x0, cfg)
    Returns the final parameter tree.

gradient_descent_history(objective, x0, cfg)
    Same loop, also returning the per-iteration losses.

Notes
-----
One iteration is compiled with `jax.jit` on first use and reused for the
whole run, so `objective` must be traceable. For a fully compiled loop see
`optimization.jit_wrappers.JittedGD`.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, List, Tuple

import jax
import jax.numpy as jnp
from loguru import logger

from ..slam.manifold import manifold_summary, retract
from .autodiff import value_with_gradient

ObjectiveFn = Callable[[Any], jnp.ndarray]


@dataclass
class GDConfig:
    learning_rate: float = 1.0
    max_iters: int = 100
    log_every: int = 0


def gd_step(objective: ObjectiveFn, x: Any, learning_rate: float) -> Tuple[Any, jnp.ndarray]:
    """One descent step; returns (x_next, objective(x))."""
    value, grad = value_with_gradient(x, objective)
    step = jax.tree_util.tree_map(lambda g: -learning_rate * g, grad)
    return retract(x, step), value


def gradient_descent_history(
    objective: ObjectiveFn, x0: Any, cfg: GDConfig
) -> Tuple[Any, List[float]]:
    """
    Fixed-step manifold gradient descent.

    Args:
        objective: f(x) -> scalar loss
        x0: initial parameter tree
        cfg: hyperparameters

    Returns:
        (x_opt, losses) where losses[k] is f evaluated before update k.
    """
    logger.info(
        f"Gradient descent: {cfg.max_iters} iterations, learning_rate={cfg.learning_rate}, "
        f"variables={manifold_summary(x0)}"
    )

    step = jax.jit(lambda x: gd_step(objective, x, cfg.learning_rate))

    x = x0
    losses: List[float] = []
    for i in range(cfg.max_iters):
        x, value = step(x)
        losses.append(float(value))
        if cfg.log_every > 0 and i % cfg.log_every == 0:
            logger.info(f"  step #{i}: loss={losses[-1]:.8f}")

    if losses:
        logger.debug(f"Gradient descent finished: initial loss={losses[0]:.8f}, last loss={losses[-1]:.8f}")
    return x, losses


def gradient_descent(objective: ObjectiveFn, x0: Any, cfg: GDConfig) -> Any:
    """
    Fixed-step gradient descent on the manifold.

    Args:
        objective: f(x) -> scalar loss
        x0: initial parameter tree
        cfg: hyperparameters

    Returns:
        x_opt: parameter tree after `cfg.max_iters` updates
    """
    x, _ = gradient_descent_history(objective, x0, cfg)
    return x
