"""
Configuration for the territory run service.
"""

from .config import Settings, settings

__all__ = ['Settings', 'settings']
