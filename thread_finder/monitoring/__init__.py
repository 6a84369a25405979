"""Observability for the thread finder."""
