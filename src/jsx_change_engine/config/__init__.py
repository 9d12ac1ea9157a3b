"""Configuration management and presets.

This module provides configuration management through:
- RuntimeConfig: Runtime configuration from presets, env vars, files, and CLI flags
- PRESETS: Named preset factories (conservative, balanced, aggressive)
- ConfigError: Exception for configuration errors
"""

from jsx_change_engine.config.runtime_config import PRESETS, ConfigError, RuntimeConfig

__all__ = ["PRESETS", "ConfigError", "RuntimeConfig"]
