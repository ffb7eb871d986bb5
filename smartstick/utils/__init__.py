"""Shared helpers: logging and loop timing."""
