"""
Configuration loading for the index queue administration layer.
"""

from .config_loader import AdminConfig

__all__ = ["AdminConfig"]
