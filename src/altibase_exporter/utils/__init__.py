"""Shared logging and tracing helpers."""
