"""Value types and closed-form Lie-group math for SE(2)."""
