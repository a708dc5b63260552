"""Shared helpers: text normalization, logging and CLI output formatting."""
