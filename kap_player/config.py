"""
kap-player Configuration System.

Priority order (highest to lowest):
1. Command-line arguments
2. Environment variables
3. Configuration file (YAML)
4. Default values
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from kap_player.library.scanner import DEFAULT_EXTENSIONS, normalize_extension

logger = logging.getLogger(__name__)


# Valid sink types
VALID_BACKENDS = {"local", "null"}

# Valid log levels
VALID_LOG_LEVELS = {"debug", "info", "warning", "error"}

# Environment variable mappings
ENV_MAPPINGS = {
    # Library
    "KAP_MUSIC_FOLDER": ("library", "folder"),
    "KAP_EXTENSIONS": ("library", "extensions"),
    # Playback
    "KAP_SHUFFLE": ("playback", "shuffle"),
    "KAP_AUTO_ADVANCE": ("playback", "auto_advance"),
    "KAP_AUTOPLAY": ("playback", "autoplay"),
    # Backend
    "KAP_BACKEND": ("backend", "type"),
    "KAP_AUDIO_DEVICE": ("backend", "local", "device"),
    "KAP_BUFFER_SIZE": ("backend", "local", "buffer_size"),
    # Logging
    "KAP_LOG_LEVEL": ("logging", "level"),
}

BOOL_ENV_VARS = {"KAP_SHUFFLE", "KAP_AUTO_ADVANCE", "KAP_AUTOPLAY"}
INT_ENV_VARS = {"KAP_BUFFER_SIZE"}

TRUE_STRINGS = {"true", "1", "yes", "on"}
FALSE_STRINGS = {"false", "0", "no", "off", ""}


class ConfigError(Exception):
    """Configuration error."""

    pass


@dataclass
class LibraryConfig:
    """Music folder configuration."""

    folder: str = "./music"
    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))


@dataclass
class PlaybackConfig:
    """Session behavior configuration."""

    shuffle: bool = False  # Initial shuffle flag
    auto_advance: bool = True  # Advance when a track ends naturally
    autoplay: bool = True  # Advance once right after the initial load


@dataclass
class LocalConfig:
    """Local audio sink configuration."""

    device: str = "default"  # "default", device index, or name substring
    buffer_size: int = 2048  # Frames per PortAudio callback


@dataclass
class BackendConfig:
    """Audio sink configuration."""

    type: str = "local"
    local: LocalConfig = field(default_factory=LocalConfig)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class Config:
    """Complete kap-player configuration."""

    library: LibraryConfig = field(default_factory=LibraryConfig)
    playback: PlaybackConfig = field(default_factory=PlaybackConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def validate_config(config: Config) -> None:
    """
    Validate configuration.

    Raises:
        ConfigError: If configuration is invalid
    """
    errors = []

    # Library
    if not config.library.folder:
        errors.append("Music folder is required")
    if not [e for e in config.library.extensions if e]:
        errors.append("At least one audio file extension is required")

    # Backend
    if config.backend.type not in VALID_BACKENDS:
        errors.append(
            f"Invalid backend type: {config.backend.type}. "
            f"Valid values: {sorted(VALID_BACKENDS)}"
        )
    if config.backend.type == "local":
        if not config.backend.local.device:
            errors.append("Audio device is required when backend type is 'local'")
        buffer_size = config.backend.local.buffer_size
        if not isinstance(buffer_size, int) or buffer_size <= 0:
            errors.append(f"Invalid buffer size: {buffer_size}")

    # Logging
    if config.logging.level.lower() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid log level: {config.logging.level}. "
            f"Valid values: {sorted(VALID_LOG_LEVELS)}"
        )

    if errors:
        raise ConfigError("Configuration validation failed:\n  - " + "\n  - ".join(errors))


def load_yaml_config(path: Path) -> dict:
    """
    Load configuration from YAML file.

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    if not path.exists():
        logger.debug(f"Config file not found: {path}")
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
            return data if data else {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML config: {e}")
    except IOError as e:
        raise ConfigError(f"Error reading config file: {e}")


def set_nested(d: dict, path: tuple, value: Any) -> None:
    """Set a nested dictionary value using a path tuple."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def parse_bool(value: str) -> bool:
    """Parse a boolean from an environment-style string."""
    return value.strip().lower() in TRUE_STRINGS


def parse_extensions(value: Any) -> list[str]:
    """Normalize extensions given as a comma separated string or a list."""
    if isinstance(value, str):
        value = value.split(",")
    return [normalize_extension(str(v)) for v in value if str(v).strip()]


def load_env_config() -> dict:
    """Load configuration from environment variables."""
    result: dict = {}

    for env_var, path in ENV_MAPPINGS.items():
        value: Any = os.environ.get(env_var)
        if value is None:
            continue

        if env_var in BOOL_ENV_VARS:
            value = parse_bool(value)
        elif env_var in INT_ENV_VARS:
            try:
                value = int(value)
            except ValueError:
                logger.warning(f"Invalid integer for {env_var}: {value}")
                continue
        elif env_var == "KAP_EXTENSIONS":
            value = parse_extensions(value)

        set_nested(result, path, value)

    return result


def _deep_merge(base: dict, override: dict) -> None:
    """Recursively merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def merge_configs(*configs: dict) -> dict:
    """
    Deep merge multiple configuration dictionaries.
    Later configs override earlier ones.
    """
    result: dict = {}
    for config in configs:
        _deep_merge(result, config)
    return result


def _coerce_bool(value: Any, name: str, errors: list[str]) -> Optional[bool]:
    """Accept YAML booleans, 0/1, and the strings parse_bool understands."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in TRUE_STRINGS | FALSE_STRINGS:
        return parse_bool(value)
    errors.append(f"Invalid value for {name}: {value!r} (expected true or false)")
    return None


def _coerce_int(value: Any, name: str, errors: list[str]) -> Optional[int]:
    if isinstance(value, bool):
        errors.append(f"Invalid value for {name}: {value!r} (expected an integer)")
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        errors.append(f"Invalid value for {name}: {value!r} (expected an integer)")
        return None


def dict_to_config(d: dict) -> Config:
    """
    Convert a dictionary to Config dataclass.

    Raises:
        ConfigError: If a value has the wrong type
    """
    config = Config()
    errors: list[str] = []

    if "library" in d:
        lib = d["library"] or {}
        config.library.folder = str(lib.get("folder", config.library.folder))
        if "extensions" in lib:
            config.library.extensions = parse_extensions(lib["extensions"])

    if "playback" in d:
        p = d["playback"] or {}
        for key in ("shuffle", "auto_advance", "autoplay"):
            if key in p:
                value = _coerce_bool(p[key], f"playback.{key}", errors)
                if value is not None:
                    setattr(config.playback, key, value)

    if "backend" in d:
        b = d["backend"] or {}
        config.backend.type = b.get("type", config.backend.type)
        if "local" in b:
            local = b["local"] or {}
            config.backend.local.device = str(local.get("device", config.backend.local.device))
            if "buffer_size" in local:
                buffer_size = _coerce_int(local["buffer_size"], "backend.local.buffer_size", errors)
                if buffer_size is not None:
                    config.backend.local.buffer_size = buffer_size

    if "logging" in d:
        config.logging.level = str((d["logging"] or {}).get("level", config.logging.level))

    if errors:
        raise ConfigError("Configuration validation failed:\n  - " + "\n  - ".join(errors))

    return config


def load_config(
    config_path: Optional[Path] = None,
    cli_args: Optional[dict] = None,
) -> Config:
    """
    Load configuration from all sources.

    Priority (highest to lowest):
    1. CLI arguments
    2. Environment variables
    3. Config file
    4. Defaults

    Raises:
        ConfigError: If configuration is invalid
    """
    configs = []

    if config_path:
        file_config = load_yaml_config(config_path)
        if file_config:
            configs.append(file_config)
            logger.debug(f"Loaded config from {config_path}")

    env_config = load_env_config()
    if env_config:
        configs.append(env_config)
        logger.debug("Loaded config from environment variables")

    if cli_args:
        configs.append(cli_args)
        logger.debug("Loaded config from CLI arguments")

    merged = merge_configs(*configs) if configs else {}
    config = dict_to_config(merged)
    validate_config(config)

    return config
