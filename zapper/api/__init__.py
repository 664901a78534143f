"""HTTP API for the zap engine."""
