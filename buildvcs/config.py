"""Configuration management for buildvcs.

Settings are resolved per key from an environment variable, then from an
options object handed over by the host tool, then from the ``[buildvcs]``
section of a config file, and finally from a built-in default.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Dict, List, Optional, Tuple

import koji

logger = logging.getLogger(__name__)

CONFIG_SECTION = "buildvcs"

# Module-level config cache
_config: Optional[Dict[str, Any]] = None
_options: Optional[Any] = None  # Options object from the host tool, if any


def initialize(options: Any) -> None:
    """Initialize config module with an already parsed options object.

    Hosts that parse their own configuration (kojid plugins, build scripts)
    call this once at startup so the config file is not read twice.

    Args:
        options: Object exposing ``buildvcs_<key>`` attributes
    """
    global _options
    _options = options
    logger.debug("Config module initialized with host options object")


def _parse_config_file(config_file: Optional[str] = None) -> Dict[str, Any]:
    """Read the ``[buildvcs]`` section of a config file.

    Args:
        config_file: Path to config file. If None, nothing is read.

    Returns:
        Dict of raw string values, empty when no file or section exists
    """
    if not config_file:
        return {}
    if not os.path.exists(config_file):
        logger.warning("Config file %s does not exist, using defaults", config_file)
        return {}

    try:
        parser = koji.read_config_files([config_file])
    except Exception as exc:
        logger.warning("Failed to read config file %s: %s", config_file, exc)
        return {}

    if not parser.has_section(CONFIG_SECTION):
        logger.debug("No [%s] section in %s", CONFIG_SECTION, config_file)
        return {}
    return dict(parser.items(CONFIG_SECTION))


def _get_config() -> Dict[str, Any]:
    """Get parsed config dict, initializing if needed."""
    global _config
    if _config is None:
        config_file = os.environ.get("BUILDVCS_CONFIG")
        _config = _parse_config_file(config_file)
    return _config


def _lookup(key: str, env_var: Optional[str]) -> Tuple[Optional[str], Any]:
    """Find the raw value of ``key`` and name where it came from.

    Returns:
        (source description, value), or (None, None) when no layer sets it
    """
    if env_var and env_var in os.environ:
        return env_var, os.environ[env_var]

    option_key = f"buildvcs_{key}"
    if _options is not None and hasattr(_options, option_key):
        return f"option {option_key}", getattr(_options, option_key)

    value = _get_config().get(key)
    if value is not None:
        return f"[{CONFIG_SECTION}] {key}", value
    return None, None


def _get_config_value(
    key: str,
    default: Any,
    env_var: Optional[str] = None,
    converter: Optional[Callable[[str], Any]] = None,
) -> Any:
    """Get config value with fallback chain: env var, options, config file, default.

    Only string values are passed through ``converter``; an options object
    may already hold typed values. A value the converter rejects logs a
    warning and yields ``default``.
    """
    source, value = _lookup(key, env_var)
    if source is None:
        return default
    if converter is None or not isinstance(value, str):
        return value
    try:
        return converter(value)
    except ValueError:
        logger.warning("Invalid value for %s: %s, using default", source, value)
        return default


def _parse_bool(value: str) -> bool:
    """Accept true, 1, yes or on in any case as true; anything else is false."""
    return value.lower() in ("true", "1", "yes", "on")


def _parse_list(value: str) -> List[str]:
    """Split a comma and/or space separated list ("svn,git", "git svn")."""
    return value.replace(",", " ").split()


def svn_command() -> str:
    """Subversion client executable."""
    return _get_config_value("svn_command", "svn", env_var="BUILDVCS_SVN_COMMAND")


def git_command() -> str:
    """Git client executable."""
    return _get_config_value("git_command", "git", env_var="BUILDVCS_GIT_COMMAND")


def backend_order() -> List[str]:
    """Backend names in detection precedence order (default: svn, git).

    A working copy holding both marker directories resolves to whichever
    backend comes first here.
    """
    return _get_config_value(
        "backend_order",
        ["svn", "git"],
        env_var="BUILDVCS_BACKEND_ORDER",
        converter=_parse_list,
    )


def stable_branch_prefix() -> str:
    """Prefix of stable branches named ``<prefix><major>_<minor>``."""
    return _get_config_value(
        "stable_branch_prefix",
        "release_",
        env_var="BUILDVCS_STABLE_BRANCH_PREFIX",
    )


def keep_temp() -> bool:
    """Keep VCS bookkeeping in export results when the caller does not say."""
    return _get_config_value(
        "keep_temp",
        False,
        env_var="BUILDVCS_KEEP_TEMP",
        converter=_parse_bool,
    )


def temp_prefix() -> str:
    """Prefix of the scratch directory used while hoisting an exported subtree."""
    return _get_config_value("temp_prefix", "tmp-co.", env_var="BUILDVCS_TEMP_PREFIX")


def command_timeout() -> int:
    """Seconds an external tool may run before it is killed (0 = no limit)."""
    return _get_config_value(
        "command_timeout",
        0,
        env_var="BUILDVCS_COMMAND_TIMEOUT",
        converter=int,
    )


def trace_commands() -> bool:
    """Log every external command at INFO level instead of DEBUG."""
    return _get_config_value(
        "trace_commands",
        False,
        env_var="BUILDVCS_TRACE_COMMANDS",
        converter=_parse_bool,
    )


def reset_config() -> None:
    """Reset config cache (useful for testing)."""
    global _config, _options
    _config = None
    _options = None
