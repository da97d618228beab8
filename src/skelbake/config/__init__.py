"""
Configuration

Default constants and export settings for the animation baker.
"""

from .settings import ExportSettings, InvalidSettingsError, load_settings, resolve_preset

__all__ = [
    'ExportSettings',
    'InvalidSettingsError',
    'load_settings',
    'resolve_preset',
]
