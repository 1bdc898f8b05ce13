"""YAML settings for Ziege.

Settings live in ``settings.yaml`` in the data root. The file is optional and
every key has a default::

    zig_index_url: https://ziglang.org/download/index.json
    index_max_age_hours: 24
    http_timeout: 30
    verify_downloads: true
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from ziege.core.exceptions import ConfigError

DEFAULT_ZIG_INDEX_URL = "https://ziglang.org/download/index.json"
DEFAULT_ZLS_INDEX_URL = (
    "https://zigtools-releases.nyc3.digitaloceanspaces.com/zls/index.json"
)
# {url_platform}-{version}.{archive_ext}
DEFAULT_ZIG_NIGHTLY_URL_TEMPLATE = (
    "https://ziglang.org/builds/zig-{url_platform}-{version}.{archive_ext}"
)
DEFAULT_ZLS_URL_TEMPLATE = (
    "https://zigtools-releases.nyc3.digitaloceanspaces.com/zls/"
    "{version}/{json_platform}/{binary}"
)


@dataclass
class Settings:
    """User-tunable settings."""

    zig_index_url: str = DEFAULT_ZIG_INDEX_URL
    zls_index_url: str = DEFAULT_ZLS_INDEX_URL
    zig_nightly_url_template: str = DEFAULT_ZIG_NIGHTLY_URL_TEMPLATE
    zls_url_template: str = DEFAULT_ZLS_URL_TEMPLATE
    index_max_age_hours: float = 24
    http_timeout: float = 30
    verify_downloads: bool = True


_FIELD_TYPES = {
    "zig_index_url": (str,),
    "zls_index_url": (str,),
    "zig_nightly_url_template": (str,),
    "zls_url_template": (str,),
    "index_max_age_hours": (int, float),
    "http_timeout": (int, float),
    "verify_downloads": (bool,),
}


def load_settings(config_path: Optional[Path]) -> Settings:
    """
    Load settings from a YAML file.

    Args:
        config_path: Path to settings.yaml, or None for defaults

    Returns:
        Parsed settings (defaults if the file does not exist or is empty)

    Raises:
        ConfigError: If the file is not valid YAML or has invalid values
    """
    if config_path is None or not config_path.exists():
        return Settings()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read {config_path}: {e}")

    if data is None:
        return Settings()

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping")

    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown settings in {config_path}: {', '.join(unknown)}")

    for key, value in data.items():
        expected = _FIELD_TYPES[key]
        # bool is an int subclass; keep numbers and flags apart
        if isinstance(value, bool) and bool not in expected:
            raise ConfigError(f"Setting '{key}' must be a number, got {value!r}")
        if not isinstance(value, expected):
            raise ConfigError(
                f"Setting '{key}' has invalid value {value!r} "
                f"(expected {expected[0].__name__})"
            )

    settings = Settings(**data)
    if settings.index_max_age_hours < 0:
        raise ConfigError("Setting 'index_max_age_hours' must not be negative")
    if settings.http_timeout <= 0:
        raise ConfigError("Setting 'http_timeout' must be positive")
    return settings
