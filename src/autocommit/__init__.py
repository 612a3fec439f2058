"""Autocommit - chunked commit and push automation for CI pipelines."""

__version__ = "0.1.0"
