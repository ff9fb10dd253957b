"""Configuration for icns.

Configuration is resolved once at startup, in increasing priority:

1. built-in defaults
2. a YAML file (``--config``, ``$ICNS_CONFIG`` or ``~/.config/icns/config.yaml``)
3. environment variables (``ICNS_API_BASE``, ``ICNS_TIMEOUT_MS``,
   ``ICNS_CACHE_DIR``, ``ICNS_RENDERER``)

The resulting :class:`Config` is immutable and passed explicitly to the
catalog client, the snapshot store and the rasterizer.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from icns import __version__
from icns.exceptions import ConfigError

DEFAULT_API_BASE = "https://api.iconify.design"
DEFAULT_TIMEOUT = 10.0
RENDERERS = ("auto", "rsvg-convert", "inkscape")


def _default_cache_dir() -> Path:
    return Path.home() / ".cache" / "icns"


def _default_config_file() -> Path:
    return Path.home() / ".config" / "icns" / "config.yaml"


@dataclass(frozen=True)
class Config:
    """Process-wide, read-only settings."""

    api_base: str = DEFAULT_API_BASE
    timeout: float = DEFAULT_TIMEOUT
    cache_dir: Path = field(default_factory=_default_cache_dir)
    renderer: str = "auto"
    user_agent: str = f"icns/{__version__}"

    def __post_init__(self) -> None:
        object.__setattr__(self, "api_base", self.api_base.rstrip("/"))
        object.__setattr__(self, "cache_dir", Path(self.cache_dir).expanduser())
        if self.timeout <= 0:
            raise ConfigError(f"timeout: must be positive, got {self.timeout}")
        if self.renderer not in RENDERERS:
            raise ConfigError(
                f"renderer: must be one of {', '.join(RENDERERS)}, got {self.renderer!r}"
            )

    @property
    def index_path(self) -> Path:
        """Location of the local snapshot file."""
        return self.cache_dir / "index.json"

    @classmethod
    def load(cls, path: Path | None = None) -> Config:
        """Build the configuration from file and environment.

        Args:
            path: Explicit YAML config file. When given it must exist.

        Raises:
            ConfigError: If the file or a value is invalid.
        """
        config = cls()

        explicit = path is not None
        if path is None and os.environ.get("ICNS_CONFIG"):
            path = Path(os.environ["ICNS_CONFIG"])
            explicit = True
        if path is None:
            path = _default_config_file()

        if path.exists():
            config = replace(config, **_read_config_file(path))
        elif explicit:
            raise ConfigError(f"Config file not found: {path}")

        return replace(config, **_read_environment())


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")

    values: dict[str, Any] = {}
    for key, value in data.items():
        if key == "api_base":
            if not isinstance(value, str):
                raise ConfigError(f"api_base: expected string, got {type(value).__name__}")
            values["api_base"] = value
        elif key == "timeout_ms":
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise ConfigError(f"timeout_ms: expected number, got {type(value).__name__}")
            values["timeout"] = float(value) / 1000
        elif key == "cache_dir":
            if not isinstance(value, str):
                raise ConfigError(f"cache_dir: expected string path, got {type(value).__name__}")
            values["cache_dir"] = Path(value)
        elif key == "renderer":
            values["renderer"] = str(value)
        else:
            raise ConfigError(f"{key}: unknown configuration key")
    return values


def _read_environment() -> dict[str, Any]:
    values: dict[str, Any] = {}
    if os.environ.get("ICNS_API_BASE"):
        values["api_base"] = os.environ["ICNS_API_BASE"]
    if os.environ.get("ICNS_TIMEOUT_MS"):
        raw = os.environ["ICNS_TIMEOUT_MS"]
        try:
            values["timeout"] = float(raw) / 1000
        except ValueError as e:
            raise ConfigError(f"ICNS_TIMEOUT_MS: expected number, got {raw!r}") from e
    if os.environ.get("ICNS_CACHE_DIR"):
        values["cache_dir"] = Path(os.environ["ICNS_CACHE_DIR"])
    if os.environ.get("ICNS_RENDERER"):
        values["renderer"] = os.environ["ICNS_RENDERER"]
    return values
