"""
Configuration for the Video API.

Storage and Cosmos credentials come from the environment; either may be
absent, in which case only the operations needing it fail.
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
