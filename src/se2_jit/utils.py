# Copyright (c) 2025.
# This file is part of SE2-JIT, released under the MIT License.
"""Logging helpers usable from inside jitted solver loops."""

from functools import partial

import jax
from loguru import logger


def _emit(fmt: str, *args, **kwargs) -> None:
    logger.bind(source="jit").info(fmt, *args, **kwargs)


def jax_log(fmt: str, *args, **kwargs) -> None:
    """Log a loguru message with traced values, e.g. the loss inside `lax.fori_loop`."""
    jax.debug.callback(partial(_emit, fmt), *args, **kwargs)
