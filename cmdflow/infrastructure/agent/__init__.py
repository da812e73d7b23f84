"""Agent infrastructure: commands, permissions and routing."""
