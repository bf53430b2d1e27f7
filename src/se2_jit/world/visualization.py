# Copyright (c) 2025.
# This file is part of SE2-JIT, released under the MIT License.
"""
Visualization utilities for SE2-JIT.

Top-down matplotlib rendering of planar pose graphs: each pose is drawn as a
dot with a short heading segment, and factors are drawn as edges between the
poses they connect. Intended for debugging optimizer runs and for the
experiment scripts; nothing in the library depends on it.
"""

from __future__ import annotations

from typing import Optional, Sequence

import jax.numpy as jnp
import matplotlib.pyplot as plt

from ..core.pose2 import Pose2
from ..core.types import Factor


def plot_poses_2d(
    poses: Sequence[Pose2],
    factors: Optional[Sequence[Factor]] = None,
    ax: Optional[plt.Axes] = None,
    heading_length: float = 0.3,
    show_labels: bool = True,
    color: str = "tab:blue",
    title: Optional[str] = None,
) -> plt.Axes:
    """
    Render poses (and optionally factor edges) in the x–y plane.

    Returns the Axes so callers can overlay several runs.
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(6, 6))

    xyt = jnp.stack([p.as_xytheta() for p in poses]) if poses else jnp.zeros((0, 3))

    if factors:
        for f in factors:
            if len(f.var_ids) != 2:
                continue
            a, b = xyt[f.var_ids[0]], xyt[f.var_ids[1]]
            ax.plot([a[0], b[0]], [a[1], b[1]], color="0.6", linewidth=1.0, zorder=1)

    ax.scatter(xyt[:, 0], xyt[:, 1], color=color, s=30, zorder=2)
    for k, (x, y, theta) in enumerate(xyt.tolist()):
        dx = heading_length * float(jnp.cos(theta))
        dy = heading_length * float(jnp.sin(theta))
        ax.plot([x, x + dx], [y, y + dy], color=color, linewidth=2.0, zorder=3)
        if show_labels:
            ax.text(x, y, f" {k}", fontsize=8, zorder=4)

    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.set_aspect("equal", adjustable="datalim")
    if title is not None:
        ax.set_title(title)
    return ax
