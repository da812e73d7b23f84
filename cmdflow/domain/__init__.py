"""Domain layer: pure command and agent models."""
