"""Command execution and filesystem probes."""
