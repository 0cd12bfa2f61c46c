"""Service-hook verification and dispatch."""
