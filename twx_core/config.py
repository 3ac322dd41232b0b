"""
TWX Configuration System
========================

Loads and manages configuration from twx.yaml with environment variable overrides.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .classifier import MEDIA_PREFIXES
from .collector import DEFAULT_MERGE_LIBRARY
from .rewriter import DEFAULT_ARG_INDENT, DEFAULT_CLOSE_INDENT
from .scanner import DEFAULT_ATTRIBUTE, DEFAULT_JOIN_FUNCTION
from .version import __version__

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "twx.yaml"

_JS_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_ATTRIBUTE_NAME = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$:.-]*$")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# =============================================================================
# Configuration Data Classes
# =============================================================================

@dataclass
class TransformConfig:
    """What to match and what to emit."""
    attribute_name: str = DEFAULT_ATTRIBUTE
    join_function: str = DEFAULT_JOIN_FUNCTION
    merge_library: str = DEFAULT_MERGE_LIBRARY
    prefixes: List[str] = field(default_factory=lambda: list(MEDIA_PREFIXES))
    arg_indent: int = DEFAULT_ARG_INDENT
    close_indent: int = DEFAULT_CLOSE_INDENT
    strict_parse: bool = False  # Syntax errors abort instead of being recovered


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "WARNING"


@dataclass
class TWXConfig:
    """Root configuration container."""
    transform: TransformConfig = field(default_factory=TransformConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    version: str = __version__


# =============================================================================
# Configuration Loader
# =============================================================================

def find_config_file(start_path: Optional[Path] = None) -> Optional[Path]:
    """
    Find twx.yaml by searching upward from start_path.

    Search order:
    1. start_path / twx.yaml
    2. start_path / .twx / twx.yaml
    3. Parent directories (recursive)
    4. ~/.config/twx/twx.yaml
    5. /etc/twx/twx.yaml

    Args:
        start_path: Starting directory (defaults to cwd)

    Returns:
        Path to config file or None if not found
    """
    if start_path is None:
        start_path = Path.cwd()

    current = Path(start_path).resolve()
    for _ in range(10):  # Max 10 levels up
        for candidate in (current / CONFIG_FILENAME, current / ".twx" / CONFIG_FILENAME):
            if candidate.exists():
                return candidate

        parent = current.parent
        if parent == current:
            break
        current = parent

    user_config = Path.home() / ".config" / "twx" / CONFIG_FILENAME
    if user_config.exists():
        return user_config

    system_config = Path("/etc/twx") / CONFIG_FILENAME
    if system_config.exists():
        return system_config

    return None


def load_config(config_path: Optional[Path] = None) -> TWXConfig:
    """
    Load configuration from YAML file with environment variable overrides.

    Environment variables override config file values:
    - TWX_ATTRIBUTE -> transform.attribute_name
    - TWX_JOIN_FUNCTION -> transform.join_function
    - TWX_MERGE_LIBRARY -> transform.merge_library
    - TWX_STRICT_PARSE -> transform.strict_parse
    - TWX_LOG_LEVEL -> logging.level

    Args:
        config_path: Path to config file (auto-detected if None)

    Returns:
        TWXConfig instance
    """
    config = TWXConfig()

    if config_path is None:
        config_path = find_config_file()

    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError("top-level YAML value must be a mapping")
            config = _parse_config_dict(data)
        except (OSError, yaml.YAMLError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to load config: {e}, using defaults")
            config = TWXConfig()
    else:
        logger.info("No config file found, using defaults")

    config = _apply_env_overrides(config)
    _validate_config(config)

    return config


def _parse_config_dict(data: Dict[str, Any]) -> TWXConfig:
    """Parse configuration dictionary into TWXConfig."""
    config = TWXConfig()

    if "transform" in data:
        tr = data["transform"] or {}
        config.transform = TransformConfig(
            attribute_name=tr.get("attribute_name", config.transform.attribute_name),
            join_function=tr.get("join_function", config.transform.join_function),
            merge_library=tr.get("merge_library", config.transform.merge_library),
            prefixes=_as_list(tr.get("prefixes", config.transform.prefixes)),
            arg_indent=int(tr.get("arg_indent", config.transform.arg_indent)),
            close_indent=int(tr.get("close_indent", config.transform.close_indent)),
            strict_parse=bool(tr.get("strict_parse", config.transform.strict_parse)),
        )

    if "logging" in data:
        log = data["logging"] or {}
        config.logging = LoggingConfig(
            level=str(log.get("level", config.logging.level)).upper(),
        )

    config.version = str(data.get("version", config.version))

    return config


def _as_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return value.split()
    return list(value or [])


def _apply_env_overrides(config: TWXConfig) -> TWXConfig:
    """Apply environment variable overrides to config."""

    if os.environ.get("TWX_ATTRIBUTE"):
        config.transform.attribute_name = os.environ["TWX_ATTRIBUTE"]

    if os.environ.get("TWX_JOIN_FUNCTION"):
        config.transform.join_function = os.environ["TWX_JOIN_FUNCTION"]

    if os.environ.get("TWX_MERGE_LIBRARY"):
        config.transform.merge_library = os.environ["TWX_MERGE_LIBRARY"]

    if os.environ.get("TWX_STRICT_PARSE"):
        config.transform.strict_parse = os.environ["TWX_STRICT_PARSE"].lower() in ("true", "1", "yes")

    if os.environ.get("TWX_LOG_LEVEL"):
        config.logging.level = os.environ["TWX_LOG_LEVEL"].upper()

    return config


def _validate_config(config: TWXConfig) -> None:
    """Validate configuration, log warnings and fall back to defaults."""
    defaults = TransformConfig()
    tr = config.transform

    if not _ATTRIBUTE_NAME.match(str(tr.attribute_name)):
        logger.warning(f"Invalid attribute name '{tr.attribute_name}', defaulting to '{defaults.attribute_name}'")
        tr.attribute_name = defaults.attribute_name

    if not _JS_IDENTIFIER.match(str(tr.join_function)):
        logger.warning(f"Invalid join function '{tr.join_function}', defaulting to '{defaults.join_function}'")
        tr.join_function = defaults.join_function

    if not tr.merge_library or '"' in str(tr.merge_library) or "\n" in str(tr.merge_library):
        logger.warning(f"Invalid merge library '{tr.merge_library}', defaulting to '{defaults.merge_library}'")
        tr.merge_library = defaults.merge_library

    prefixes = [str(p) for p in tr.prefixes if p]
    if not prefixes:
        logger.warning("Empty prefix table, using the default breakpoint prefixes")
        prefixes = list(defaults.prefixes)
    for prefix in prefixes:
        if not prefix.endswith(":"):
            logger.warning(f"Prefix '{prefix}' has no trailing colon and will match more than a variant")
    tr.prefixes = prefixes

    if tr.arg_indent < 0:
        logger.warning(f"Negative arg_indent {tr.arg_indent}, defaulting to {defaults.arg_indent}")
        tr.arg_indent = defaults.arg_indent

    if tr.close_indent < 0:
        logger.warning(f"Negative close_indent {tr.close_indent}, defaulting to {defaults.close_indent}")
        tr.close_indent = defaults.close_indent

    if config.logging.level not in _LOG_LEVELS:
        logger.warning(f"Unknown log level '{config.logging.level}', defaulting to 'WARNING'")
        config.logging.level = "WARNING"


def config_to_dict(config: TWXConfig) -> Dict[str, Any]:
    """Plain dictionary view of a configuration."""
    return {
        "version": config.version,
        "transform": {
            "attribute_name": config.transform.attribute_name,
            "join_function": config.transform.join_function,
            "merge_library": config.transform.merge_library,
            "prefixes": list(config.transform.prefixes),
            "arg_indent": config.transform.arg_indent,
            "close_indent": config.transform.close_indent,
            "strict_parse": config.transform.strict_parse,
        },
        "logging": {
            "level": config.logging.level,
        },
    }


def save_config(config: TWXConfig, path: Path) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: TWXConfig instance
        path: Output path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config_to_dict(config), f, default_flow_style=False, sort_keys=False)

    logger.info(f"Configuration saved to: {path}")


# =============================================================================
# Global Config Instance
# =============================================================================

_global_config: Optional[TWXConfig] = None


def get_config() -> TWXConfig:
    """Get the global configuration instance (lazy-loaded)."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def reload_config(config_path: Optional[Path] = None) -> TWXConfig:
    """Reload configuration from file."""
    global _global_config
    _global_config = load_config(config_path)
    return _global_config
