"""cmdflow: slash command execution pipeline."""

__version__ = "0.1.0"
