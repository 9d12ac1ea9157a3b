"""Build the RuntimeConfig for a CLI invocation.

Precedence: CLI flags > environment variables > config file or preset > defaults.
"""

import logging
import os
from pathlib import Path
from typing import Any

from jsx_change_engine.config.runtime_config import (
    ENV_PREFIX,
    PRESETS,
    ConfigError,
    RuntimeConfig,
)

logger = logging.getLogger(__name__)

ENV_VAR_MAP = {
    "parallel_processing": f"{ENV_PREFIX}PARALLEL",
    "max_workers": f"{ENV_PREFIX}MAX_WORKERS",
    "file_timeout_seconds": f"{ENV_PREFIX}FILE_TIMEOUT",
    "validate_bindings": f"{ENV_PREFIX}VALIDATE_BINDINGS",
    "extraction_advice": f"{ENV_PREFIX}EXTRACTION_ADVICE",
    "max_file_lines": f"{ENV_PREFIX}MAX_FILE_LINES",
    "max_jsx_block_lines": f"{ENV_PREFIX}MAX_JSX_BLOCK_LINES",
    "min_duplicate_block_lines": f"{ENV_PREFIX}MIN_DUPLICATE_BLOCK_LINES",
    "tree_cache_enabled": f"{ENV_PREFIX}TREE_CACHE",
    "tree_cache_size": f"{ENV_PREFIX}TREE_CACHE_SIZE",
    "log_level": f"{ENV_PREFIX}LOG_LEVEL",
    "log_file": f"{ENV_PREFIX}LOG_FILE",
}


def load_runtime_config(
    config: str | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> tuple[RuntimeConfig, str | None]:
    """Resolve the effective configuration.

    Args:
        config: Preset name or path to a YAML/TOML config file. None uses defaults.
        cli_overrides: Field overrides from CLI flags; None values are ignored.

    Returns:
        Tuple of (config, preset name or None when no preset was used).

    Raises:
        ConfigError: If the preset, file, environment, or overrides are invalid.
    """
    preset_name: str | None = None
    if config is None:
        base = RuntimeConfig.from_defaults()
    elif config.lower() in PRESETS:
        preset_name = config.lower()
        base = RuntimeConfig.from_preset(preset_name)
        logger.debug(f"Using preset '{preset_name}'")
    else:
        path = Path(config)
        if not path.exists():
            raise ConfigError(
                f"'{config}' is neither a preset ({', '.join(sorted(PRESETS))}) nor a config file"
            )
        base = RuntimeConfig.from_file(path)
        logger.debug(f"Loaded configuration from {path}")

    set_vars = {field: var for field, var in ENV_VAR_MAP.items() if var in os.environ}
    if set_vars:
        env_config = RuntimeConfig.from_env()
        base = base.merge_with_cli(**{field: getattr(env_config, field) for field in set_vars})
        logger.debug(f"Applied environment overrides: {', '.join(sorted(set_vars.values()))}")

    return base.merge_with_cli(**(cli_overrides or {})), preset_name
