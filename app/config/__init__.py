"""
Configuration package for the meeting settlement service.

Environment settings are loaded once through ``get_settings`` and shared
by the database, logging, payment and event layers.
"""

from app.config.settings import Settings, get_settings, settings

__all__ = ['Settings', 'get_settings', 'settings']
