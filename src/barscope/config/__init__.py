"""
Configuration module for barscope.

Exports the main Settings class, the per-stage settings models and the
get_settings function for application-wide configuration management.
"""

from .settings import (
    ExtremaSettings,
    IndicatorSettings,
    LevelSettings,
    LoggingSettings,
    PhaseSettings,
    ResampleSettings,
    Settings,
    get_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "IndicatorSettings",
    "ExtremaSettings",
    "PhaseSettings",
    "LevelSettings",
    "ResampleSettings",
    "LoggingSettings",
]
