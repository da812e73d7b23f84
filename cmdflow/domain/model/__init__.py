"""Domain models for cmdflow."""
