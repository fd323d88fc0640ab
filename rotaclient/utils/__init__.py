"""Shared helpers: logging setup and lifecycle events."""
