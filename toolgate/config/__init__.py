"""
Configuration Module

Centralized configuration management for Toolgate.
"""

from toolgate.config.settings import (
    ObservabilitySettings,
    SafetySettings,
    Settings,
    ToolSettings,
    get_settings,
)

__all__ = [
    "ObservabilitySettings",
    "SafetySettings",
    "Settings",
    "ToolSettings",
    "get_settings",
]
