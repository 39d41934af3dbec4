"""Utility functions for Editor Profiles."""

from editor_profiles.utils.log import setup_logging

__all__ = [
    "setup_logging",
]
