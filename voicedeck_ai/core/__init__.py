"""Shared infrastructure: settings and logging."""
