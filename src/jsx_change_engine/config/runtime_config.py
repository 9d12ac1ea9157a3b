"""Runtime configuration management with environment variable and file support.

This module provides the RuntimeConfig system for managing engine configuration
from multiple sources: defaults, presets, config files (YAML/TOML), environment
variables, and CLI flags. Configuration precedence: CLI flags > env vars >
config file > defaults.
"""

import logging
import os
import sys
from collections.abc import Callable
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

if sys.version_info >= (3, 11):  # noqa: UP036
    import tomllib
else:
    import tomli as tomllib  # type: ignore[no-redef]

logger = logging.getLogger(__name__)

ENV_PREFIX = "JCE_"
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigError(Exception):
    """Exception raised for configuration errors."""


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """Runtime configuration for the change-set engine.

    This immutable configuration dataclass manages engine settings from multiple
    sources with proper precedence. All fields are validated during initialization.

    Attributes:
        parallel_processing: Fan different files out over a thread pool.
        max_workers: Maximum number of worker threads for parallel processing.
        file_timeout_seconds: Time budget for one FileChange before it fails
            with a timeout ParseError.
        validate_bindings: Fail files whose result declares a name twice in one scope.
        extraction_advice: Run the extraction advisor on successful results.
        max_file_lines: Files longer than this get named-section suggestions.
        max_jsx_block_lines: JSX elements longer than this are suggested for extraction.
        min_duplicate_block_lines: Minimum size of a repeated JSX block worth reporting.
        tree_cache_enabled: Reuse syntax trees for identical (path, content) pairs.
        tree_cache_size: Maximum number of cached trees.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to log file. If None, logs to stderr only.

    Example:
        >>> config = RuntimeConfig.from_defaults()
        >>> config = config.merge_with_cli(parallel_processing=True, max_workers=None)
        >>> print(f"Parallel: {config.parallel_processing}, workers: {config.max_workers}")
        Parallel: True, workers: 4
    """

    parallel_processing: bool = False
    max_workers: int = 4
    file_timeout_seconds: float = 30.0
    validate_bindings: bool = True
    extraction_advice: bool = True
    max_file_lines: int = 300
    max_jsx_block_lines: int = 50
    min_duplicate_block_lines: int = 5
    tree_cache_enabled: bool = False
    tree_cache_size: int = 128
    log_level: str = "INFO"
    log_file: str | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization.

        Raises:
            ConfigError: If any configuration value is invalid.
        """
        if self.log_level not in VALID_LOG_LEVELS:
            raise ConfigError(
                f"Invalid log level: {self.log_level}. Must be one of {sorted(VALID_LOG_LEVELS)}"
            )

        if not 1 <= self.max_workers <= 64:
            raise ConfigError(f"max_workers must be between 1 and 64, got {self.max_workers}")
        if self.max_workers > 32:
            logger.warning(
                f"max_workers={self.max_workers} is very high. "
                f"Consider using <= 16 for optimal performance."
            )

        if self.file_timeout_seconds <= 0:
            raise ConfigError(
                f"file_timeout_seconds must be positive, got {self.file_timeout_seconds}"
            )

        for name in (
            "max_file_lines",
            "max_jsx_block_lines",
            "min_duplicate_block_lines",
            "tree_cache_size",
        ):
            value = getattr(self, name)
            if value < 1:
                raise ConfigError(f"{name} must be >= 1, got {value}")

    @classmethod
    def from_defaults(cls) -> "RuntimeConfig":
        """Create configuration with default values.

        Example:
            >>> config = RuntimeConfig.from_defaults()
            >>> assert config.validate_bindings is True
            >>> assert config.parallel_processing is False
        """
        return cls()

    @classmethod
    def from_conservative(cls) -> "RuntimeConfig":
        """Create conservative configuration for maximum safety.

        Sequential processing, strict binding validation, a generous per-file
        timeout, and no tree reuse.

        Example:
            >>> config = RuntimeConfig.from_conservative()
            >>> assert config.parallel_processing is False
            >>> assert config.max_workers == 2
        """
        return cls(
            parallel_processing=False,
            max_workers=2,
            file_timeout_seconds=60.0,
            validate_bindings=True,
            extraction_advice=True,
            tree_cache_enabled=False,
        )

    @classmethod
    def from_balanced(cls) -> "RuntimeConfig":
        """Create balanced configuration (same as defaults)."""
        return cls.from_defaults()

    @classmethod
    def from_aggressive(cls) -> "RuntimeConfig":
        """Create aggressive configuration for maximum throughput.

        Parallel processing with many workers, a shared tree cache, and no
        extraction advice.

        Example:
            >>> config = RuntimeConfig.from_aggressive()
            >>> assert config.parallel_processing is True
            >>> assert config.max_workers == 16
        """
        return cls(
            parallel_processing=True,
            max_workers=16,
            file_timeout_seconds=10.0,
            validate_bindings=True,
            extraction_advice=False,
            tree_cache_enabled=True,
            tree_cache_size=512,
            log_level="WARNING",
        )

    @classmethod
    def from_preset(cls, name: str) -> "RuntimeConfig":
        """Create configuration from a preset name.

        Raises:
            ConfigError: If ``name`` is not a known preset.
        """
        factory = PRESETS.get(name.lower())
        if factory is None:
            raise ConfigError(f"Unknown preset '{name}'. Must be one of {sorted(PRESETS)}")
        return factory()

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """Create configuration from environment variables.

        Loads configuration from environment variables with the JCE_ prefix:
        - JCE_PARALLEL: Enable parallel processing (default: "false")
        - JCE_MAX_WORKERS: Max worker threads (default: "4")
        - JCE_FILE_TIMEOUT: Per-file timeout in seconds (default: "30")
        - JCE_VALIDATE_BINDINGS: Duplicate-binding postcondition (default: "true")
        - JCE_EXTRACTION_ADVICE: Run the extraction advisor (default: "true")
        - JCE_MAX_FILE_LINES, JCE_MAX_JSX_BLOCK_LINES, JCE_MIN_DUPLICATE_BLOCK_LINES
        - JCE_TREE_CACHE: Enable the tree cache (default: "false")
        - JCE_TREE_CACHE_SIZE: Tree cache capacity (default: "128")
        - JCE_LOG_LEVEL: Logging level (default: "INFO")
        - JCE_LOG_FILE: Log file path (default: None)

        Raises:
            ConfigError: If an environment variable has an invalid value.

        Example:
            >>> os.environ["JCE_PARALLEL"] = "true"
            >>> config = RuntimeConfig.from_env()
            >>> assert config.parallel_processing is True
        """
        defaults = cls.from_defaults()

        def parse_bool(env_var: str, default: bool) -> bool:
            """Parse boolean environment variable."""
            value = os.getenv(env_var, str(default)).lower()
            if value in ("true", "1", "yes", "on"):
                return True
            if value in ("false", "0", "no", "off"):
                return False
            raise ConfigError(
                f"Invalid {env_var}='{value}'. Must be true/false, 1/0, yes/no, or on/off"
            )

        def parse_int(env_var: str, default: int, min_value: int = 1) -> int:
            """Parse integer environment variable."""
            value_str = os.getenv(env_var, str(default))
            try:
                value = int(value_str)
            except ValueError as e:
                raise ConfigError(f"Invalid {env_var}='{value_str}'. Must be an integer") from e
            if value < min_value:
                raise ConfigError(f"{env_var}={value} must be >= {min_value}")
            return value

        def parse_float(env_var: str, default: float) -> float:
            """Parse float environment variable."""
            value_str = os.getenv(env_var, str(default))
            try:
                return float(value_str)
            except ValueError as e:
                raise ConfigError(f"Invalid {env_var}='{value_str}'. Must be a number") from e

        return cls(
            parallel_processing=parse_bool(f"{ENV_PREFIX}PARALLEL", defaults.parallel_processing),
            max_workers=parse_int(f"{ENV_PREFIX}MAX_WORKERS", defaults.max_workers),
            file_timeout_seconds=parse_float(
                f"{ENV_PREFIX}FILE_TIMEOUT", defaults.file_timeout_seconds
            ),
            validate_bindings=parse_bool(
                f"{ENV_PREFIX}VALIDATE_BINDINGS", defaults.validate_bindings
            ),
            extraction_advice=parse_bool(
                f"{ENV_PREFIX}EXTRACTION_ADVICE", defaults.extraction_advice
            ),
            max_file_lines=parse_int(f"{ENV_PREFIX}MAX_FILE_LINES", defaults.max_file_lines),
            max_jsx_block_lines=parse_int(
                f"{ENV_PREFIX}MAX_JSX_BLOCK_LINES", defaults.max_jsx_block_lines
            ),
            min_duplicate_block_lines=parse_int(
                f"{ENV_PREFIX}MIN_DUPLICATE_BLOCK_LINES", defaults.min_duplicate_block_lines
            ),
            tree_cache_enabled=parse_bool(f"{ENV_PREFIX}TREE_CACHE", defaults.tree_cache_enabled),
            tree_cache_size=parse_int(f"{ENV_PREFIX}TREE_CACHE_SIZE", defaults.tree_cache_size),
            log_level=os.getenv(f"{ENV_PREFIX}LOG_LEVEL", defaults.log_level).upper(),
            log_file=os.getenv(f"{ENV_PREFIX}LOG_FILE") or defaults.log_file,
        )

    @classmethod
    def from_file(cls, config_path: Path) -> "RuntimeConfig":
        """Load configuration from a YAML or TOML file.

        The file uses sections rather than flat field names::

            parallel:
              enabled: true
              max_workers: 8
              file_timeout_seconds: 20
            validation:
              bindings: true
            extraction:
              enabled: true
              max_file_lines: 300
            cache:
              enabled: true
              size: 256
            logging:
              level: DEBUG
              file: engine.log

        Args:
            config_path: Path to configuration file (.yaml, .yml, or .toml).

        Raises:
            ConfigError: If the file doesn't exist, has an invalid format, or
                contains invalid values.
        """
        try:
            config_path = Path(config_path).resolve()
        except (OSError, ValueError) as e:
            raise ConfigError(f"Invalid config file path: {e}") from e

        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        if not config_path.is_file():
            raise ConfigError(f"Config path is not a file: {config_path}")

        suffix = config_path.suffix.lower()
        if suffix in (".yaml", ".yml"):
            return cls._load_from_yaml(config_path)
        elif suffix == ".toml":
            return cls._load_from_toml(config_path)
        else:
            raise ConfigError(
                f"Unsupported config file format: {suffix}. Must be .yaml, .yml, or .toml"
            )

    @classmethod
    def _load_from_yaml(cls, config_path: Path) -> "RuntimeConfig":
        try:
            with config_path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read {config_path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file must contain a mapping/dict, got {type(data).__name__}")
        return cls._from_dict(data, config_path)

    @classmethod
    def _load_from_toml(cls, config_path: Path) -> "RuntimeConfig":
        try:
            with config_path.open("rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read {config_path}: {e}") from e
        return cls._from_dict(data, config_path)

    @classmethod
    def _from_dict(cls, data: dict[str, Any], source: Path) -> "RuntimeConfig":
        """Create RuntimeConfig from a sectioned mapping.

        A section given as a bare bool sets its ``enabled`` flag.
        """
        defaults = cls.from_defaults()

        def section(name: str) -> dict[str, Any]:
            value = data.get(name, {})
            if isinstance(value, bool):
                return {"enabled": value}
            if not isinstance(value, dict):
                raise ConfigError(f"Invalid {name} type in {source}: {type(value).__name__}")
            return value

        parallel = section("parallel")
        validation = section("validation")
        extraction = section("extraction")
        cache = section("cache")
        logging_config = section("logging")

        log_file = logging_config.get("file", defaults.log_file)
        try:
            return cls(
                parallel_processing=bool(parallel.get("enabled", defaults.parallel_processing)),
                max_workers=int(parallel.get("max_workers", defaults.max_workers)),
                file_timeout_seconds=float(
                    parallel.get("file_timeout_seconds", defaults.file_timeout_seconds)
                ),
                validate_bindings=bool(validation.get("bindings", defaults.validate_bindings)),
                extraction_advice=bool(extraction.get("enabled", defaults.extraction_advice)),
                max_file_lines=int(extraction.get("max_file_lines", defaults.max_file_lines)),
                max_jsx_block_lines=int(
                    extraction.get("max_jsx_block_lines", defaults.max_jsx_block_lines)
                ),
                min_duplicate_block_lines=int(
                    extraction.get(
                        "min_duplicate_block_lines", defaults.min_duplicate_block_lines
                    )
                ),
                tree_cache_enabled=bool(cache.get("enabled", defaults.tree_cache_enabled)),
                tree_cache_size=int(cache.get("size", defaults.tree_cache_size)),
                log_level=str(logging_config.get("level", defaults.log_level)).upper(),
                log_file=str(log_file) if log_file else None,
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value in {source}: {e}") from e

    def merge_with_cli(self, **overrides: Any) -> "RuntimeConfig":  # noqa: ANN401
        """Create new config with CLI flag overrides.

        Only non-None values are applied.

        Raises:
            ConfigError: If an override names an unknown field or has an invalid value.

        Example:
            >>> config = RuntimeConfig.from_env()
            >>> config = config.merge_with_cli(parallel_processing=True, log_level=None)
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        known = {f.name for f in fields(self)}
        unknown = sorted(set(filtered_overrides) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration field(s): {', '.join(unknown)}")
        if isinstance(filtered_overrides.get("log_level"), str):
            filtered_overrides["log_level"] = filtered_overrides["log_level"].upper()
        return replace(self, **filtered_overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary.

        Example:
            >>> data = RuntimeConfig.from_defaults().to_dict()
            >>> assert data["max_workers"] == 4
        """
        return asdict(self)


PRESETS: dict[str, Callable[[], RuntimeConfig]] = {
    "conservative": RuntimeConfig.from_conservative,
    "balanced": RuntimeConfig.from_balanced,
    "aggressive": RuntimeConfig.from_aggressive,
}
