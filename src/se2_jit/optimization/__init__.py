"""Tangent-space autodiff entry points and first-order solvers."""
