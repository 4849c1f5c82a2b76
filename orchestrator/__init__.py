"""Request-level orchestration of the trend model."""
