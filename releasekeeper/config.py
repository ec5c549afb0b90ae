"""Configuration file loader for releasekeeper.

Supports two formats:

- ``releasekeeper.toml``: settings under the ``[releasekeeper]`` table
- ``pyproject.toml``: settings under the ``[tool.releasekeeper]`` table

Discovery order:

1. Explicit path from ``--config`` or ``RELEASEKEEPER_CONFIG``
2. ``releasekeeper.toml`` in the current directory
3. ``pyproject.toml`` with a ``[tool.releasekeeper]`` section

Configuration precedence: defaults < config file < CLI args.

Example (``releasekeeper.toml``)::

    [releasekeeper]
    check_disabled_extensions = true
    fetch_url = "https://updates.example.com/release-history"
    max_fetch_attempts = 3
    timeout = 10
"""

from __future__ import annotations

import tomli as tomllib
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
from dataclasses import dataclass, field

from releasekeeper.exceptions import ConfigError
from releasekeeper.utils.logger import get_logger
from releasekeeper.constants import (
    DEFAULT_CHECK_DISABLED_EXTENSIONS,
    DEFAULT_FETCH_URL,
    DEFAULT_MAX_FETCH_ATTEMPTS,
    DEFAULT_TIMEOUT,
)

logger = get_logger("config")

CONFIG_FILE_NAME = "releasekeeper.toml"
SECTION_NAME = "releasekeeper"


@dataclass
class ReleaseKeeperConfig:
    """Parsed and validated releasekeeper configuration.

    All fields have defaults, so an empty config file is valid.

    Attributes:
        check_disabled_extensions: Also check projects whose extensions are
            all disabled. They are reported in their own groups.
        fetch_url: Base URL of the release-history service.
        max_fetch_attempts: Attempts per release-history download.
        timeout: Network timeout in seconds.
        source_path: Path to the loaded config file, or ``None``.
    """

    check_disabled_extensions: bool = DEFAULT_CHECK_DISABLED_EXTENSIONS
    fetch_url: str = DEFAULT_FETCH_URL
    max_fetch_attempts: int = DEFAULT_MAX_FETCH_ATTEMPTS
    timeout: int = DEFAULT_TIMEOUT

    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return the user-facing options for debug logging."""
        return {name: getattr(self, name) for name in _OPTIONS}


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def _is_int(value: Any) -> bool:
    # bool is a subclass of int; reject it explicitly
    return isinstance(value, int) and not isinstance(value, bool)


def _is_url(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(("http://", "https://"))


#: option name -> (validator, human description, minimum for ints)
_OPTIONS: Mapping[str, Tuple[Callable[[Any], bool], str, Optional[int]]] = {
    "check_disabled_extensions": (_is_bool, "a boolean", None),
    "fetch_url": (_is_url, "an http(s) URL", None),
    "max_fetch_attempts": (_is_int, "an integer", 1),
    "timeout": (_is_int, "an integer", 1),
}


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, it must exist.

    Returns:
        Resolved path to the config file, or ``None`` if none was found.

    Raises:
        ConfigError: ``explicit_path`` does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    own_file = cwd / CONFIG_FILE_NAME
    if own_file.is_file():
        logger.debug("Found %s: %s", CONFIG_FILE_NAME, own_file)
        return own_file

    pyproject = cwd / "pyproject.toml"
    if pyproject.is_file() and _pyproject_has_section(pyproject):
        logger.debug("Found [tool.%s] in pyproject.toml: %s", SECTION_NAME, pyproject)
        return pyproject

    logger.debug("No configuration file found")
    return None


def _pyproject_has_section(path: Path) -> bool:
    """Check whether ``pyproject.toml`` has a ``[tool.releasekeeper]`` table.

    An unreadable or invalid pyproject is treated as having none.
    """
    try:
        raw = _read_toml(path)
    except ConfigError as exc:
        logger.debug("Ignoring %s: %s", path, exc)
        return False
    tool = raw.get("tool", {})
    return isinstance(tool, dict) and SECTION_NAME in tool


def load_config(config_path: Optional[Path] = None) -> ReleaseKeeperConfig:
    """Load and validate releasekeeper configuration.

    Args:
        config_path: Explicit path to a config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`ReleaseKeeperConfig`; defaults when no file is
        found.

    Raises:
        ConfigError: The file cannot be parsed, has unknown keys, or has
            invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return ReleaseKeeperConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == "pyproject.toml":
        section = raw.get("tool", {}).get(SECTION_NAME, {})
    else:
        section = raw.get(SECTION_NAME, {})

    if not isinstance(section, dict):
        raise ConfigError(
            f"[{SECTION_NAME}] must be a table", config_path=str(resolved)
        )

    if not section:
        logger.debug("Config file has no %s section; using defaults", SECTION_NAME)
        return ReleaseKeeperConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: The file cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> ReleaseKeeperConfig:
    """Validate a ``[releasekeeper]`` table.

    Raises:
        ConfigError: Unknown keys, wrong types, or out-of-range values.
    """
    unknown = set(section) - set(_OPTIONS)
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    config = ReleaseKeeperConfig()

    for name, value in section.items():
        check, description, minimum = _OPTIONS[name]
        if not check(value):
            raise ConfigError(
                f"{name} must be {description}, got {type(value).__name__}",
                config_path=config_path,
                option=name,
            )
        if minimum is not None and value < minimum:
            raise ConfigError(
                f"{name} must be at least {minimum}, got {value}",
                config_path=config_path,
                option=name,
            )
        setattr(config, name, value)

    return config
