"""Shared helpers: logging setup and template/path utilities."""
