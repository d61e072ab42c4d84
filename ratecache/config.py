"""
Central configuration loader for ratecache.

Reads ``config/config.yaml`` and ``.env``, merges environment-variable
overrides (``RATECACHE_`` prefix), and exposes a typed :class:`Settings`
singleton via :func:`get_settings`.
"""

import logging
import os
import threading
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from ratecache.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Resolve project root (directory containing ``config/``)
# ---------------------------------------------------------------------------

_THIS_DIR = Path(__file__).resolve().parent          # ratecache/
_PROJECT_ROOT = _THIS_DIR.parent                     # repo root


def _project_path(*parts: str) -> Path:
    """Build an absolute path relative to the project root."""
    return _PROJECT_ROOT.joinpath(*parts)


# ---------------------------------------------------------------------------
# Nested settings dataclasses
# ---------------------------------------------------------------------------


@dataclass
class MemoryTierSettings:
    enabled: bool = True
    expiration_seconds: int = 3600


@dataclass
class FileTierSettings:
    enabled: bool = True
    path: str = "data/exchange_rates.json"
    expiration_seconds: int = 14400


@dataclass
class RemoteTierSettings:
    base_url: str = "https://openexchangerates.org/api"
    api_key_env: str = "OPENEXCHANGERATES_APP_ID"
    timeout_seconds: float = 10.0
    base_currency: str = ""


@dataclass
class ResolverSettings:
    fall_through_on_corrupt: bool = False


@dataclass
class LoggingSettings:
    level: str = "INFO"
    format: str = "text"


@dataclass
class Settings:
    """Top-level settings container."""
    memory: MemoryTierSettings = field(default_factory=MemoryTierSettings)
    file: FileTierSettings = field(default_factory=FileTierSettings)
    remote: RemoteTierSettings = field(default_factory=RemoteTierSettings)
    resolver: ResolverSettings = field(default_factory=ResolverSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    def as_dict(self) -> Dict[str, Any]:
        """Return the settings as plain nested dicts."""
        return asdict(self)

    def resolve_api_key(self) -> str:
        """Read the remote API key from the configured environment variable.

        Returns:
            The non-empty API key.

        Raises:
            ConfigurationError: If the variable is unset or blank.
        """
        key = os.environ.get(self.remote.api_key_env, "").strip()
        if not key:
            raise ConfigurationError(
                f"Environment variable {self.remote.api_key_env} is not set"
            )
        return key


# ---------------------------------------------------------------------------
# YAML loader
# ---------------------------------------------------------------------------

def _load_yaml(path: Path) -> Dict[str, Any]:
    """Read and parse a YAML file.  Returns ``{}`` if the file is missing."""
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    return data if isinstance(data, dict) else {}


def _apply_dict(target: object, data: Dict[str, Any]) -> None:
    """Apply *data* values onto a dataclass instance, ignoring unknown keys."""
    for key, value in data.items():
        if not hasattr(target, key):
            logger.debug("Ignoring unknown config key: %s", key)
            continue
        setattr(target, key, value)


# ---------------------------------------------------------------------------
# Env-var overrides  (RATECACHE_SECTION_KEY  e.g. RATECACHE_MEMORY_EXPIRATION_SECONDS)
# ---------------------------------------------------------------------------

_SECTIONS = ["memory", "file", "remote", "resolver", "logging"]

_TYPE_MAP = {
    int: int,
    float: float,
    bool: lambda v: v.lower() in ("1", "true", "yes"),
    str: str,
}


def _apply_env_overrides(settings: Settings) -> None:
    """Override scalar fields via ``RATECACHE_<SECTION>_<KEY>`` env vars."""
    for section_name in _SECTIONS:
        section = getattr(settings, section_name, None)
        if section is None:
            continue
        prefix = f"RATECACHE_{section_name.upper()}_"
        for key in list(vars(section)):
            env_key = prefix + key.upper()
            env_val = os.environ.get(env_key)
            if env_val is None:
                continue
            current = getattr(section, key)
            cast = _TYPE_MAP.get(type(current), str)
            try:
                setattr(section, key, cast(env_val))
                logger.debug("Env override applied: %s=%s", env_key, env_val)
            except (ValueError, TypeError):
                logger.warning("Invalid env override %s=%s", env_key, env_val)


def _check_types(settings: Settings) -> None:
    """Ensure every field has the type of its dataclass default.

    Integers are accepted for float fields and converted.  ``bool`` is
    never accepted where a number is expected.
    """
    for section_name in _SECTIONS:
        section = getattr(settings, section_name)
        defaults = type(section)()
        for key in list(vars(section)):
            expected = type(getattr(defaults, key))
            value = getattr(section, key)
            if expected is float and isinstance(value, int) and not isinstance(value, bool):
                setattr(section, key, float(value))
                continue
            if isinstance(value, expected) and (expected is bool or not isinstance(value, bool)):
                continue
            raise ConfigurationError(
                f"{section_name}.{key} must be {expected.__name__}, got {type(value).__name__}"
            )


def _validate(settings: Settings) -> None:
    """Reject settings the tiers cannot work with."""
    _check_types(settings)
    if settings.logging.format not in ("text", "json"):
        raise ConfigurationError("logging.format must be 'text' or 'json'")
    if settings.memory.expiration_seconds < 0:
        raise ConfigurationError("memory.expiration_seconds must be >= 0")
    if settings.file.expiration_seconds < 0:
        raise ConfigurationError("file.expiration_seconds must be >= 0")
    if settings.remote.timeout_seconds <= 0:
        raise ConfigurationError("remote.timeout_seconds must be > 0")
    if not settings.file.path:
        raise ConfigurationError("file.path must not be empty")


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_settings: Optional[Settings] = None
_lock = threading.Lock()


def get_settings(
    *,
    yaml_path: Optional[Path] = None,
    env_path: Optional[Path] = None,
    _force_reload: bool = False,
) -> Settings:
    """Return the application-wide :class:`Settings` singleton.

    On first call (or when ``_force_reload=True``) the function:

    1. Calls ``load_dotenv()`` to populate env vars from ``.env``.
    2. Reads ``config/config.yaml``.
    3. Applies ``RATECACHE_*`` environment-variable overrides.
    4. Validates the result.

    Args:
        yaml_path: Override the YAML config file path.
        env_path: Override the ``.env`` file path.
        _force_reload: Re-read everything even if already loaded.

    Returns:
        The global ``Settings`` instance.

    Raises:
        ConfigurationError: If the YAML is malformed or a value is invalid.
    """
    global _settings

    if _settings is not None and not _force_reload:
        return _settings

    with _lock:
        # Double-check after acquiring lock
        if _settings is not None and not _force_reload:
            return _settings

        dotenv_path = env_path or _project_path(".env")
        load_dotenv(dotenv_path, override=True)

        config_path = yaml_path or _project_path("config", "config.yaml")
        raw = _load_yaml(config_path)

        settings = Settings()
        for section_name in _SECTIONS:
            section_data = raw.get(section_name)
            if isinstance(section_data, dict):
                _apply_dict(getattr(settings, section_name), section_data)

        _apply_env_overrides(settings)
        _validate(settings)

        _settings = settings
        logger.info("Settings loaded from %s", config_path)
        return _settings


def reset_settings() -> None:
    """Clear the cached singleton (for testing)."""
    global _settings
    with _lock:
        _settings = None
