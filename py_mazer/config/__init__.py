"""
Configuration for the maze service.
"""

from .config import Settings, settings

__all__ = ['Settings', 'settings']
