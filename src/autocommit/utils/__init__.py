"""Utility modules for autocommit."""
