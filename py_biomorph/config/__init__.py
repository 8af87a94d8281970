"""
Configuration modules for body generation.
"""

from .settings import Settings, settings
from .generation_settings import GenerationSettings, load_generation_settings

__all__ = ['Settings', 'settings', 'GenerationSettings', 'load_generation_settings']
