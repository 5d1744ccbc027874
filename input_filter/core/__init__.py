"""Core infrastructure: settings, logging and metrics."""
