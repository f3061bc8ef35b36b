"""Core package - configuration, endpoint registry and errors."""
