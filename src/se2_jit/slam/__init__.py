"""Manifold bookkeeping, residual models and the pose-graph workload."""
