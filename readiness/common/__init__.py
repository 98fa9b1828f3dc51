"""Shared helpers: logging setup, time/parsing utilities, cancellation."""
