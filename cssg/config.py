"""Configuration loading for cssg.

A project is configured by an optional ``cssg.yaml`` at its root. Every
directory setting is resolved to an absolute path so later stages never have
to care about the current working directory.

Key items:
- ResolvedConfig: Immutable snapshot of the resolved configuration.
- load_config: Reads ``cssg.yaml`` and merges it over the defaults.
- base_path: URL prefix taken from the ``BASE_PATH`` environment variable.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = "cssg.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "pages_dir": "src/pages",
    "layouts_dir": "src/layouts",
    "data_dir": "src/data",
    "assets_dir": "src/assets",
    "public_dir": "public",
    "output_dir": "dist",
    "port": 3000,
    "site": {},
}

_DIR_KEYS = (
    "pages_dir",
    "layouts_dir",
    "data_dir",
    "assets_dir",
    "public_dir",
    "output_dir",
)


class ConfigError(Exception):
    """Raised when ``cssg.yaml`` cannot be parsed or has invalid values.

    Attributes:
        path: Path to the offending configuration file.
        message: Human-readable error message.
    """

    def __init__(self, path: Path, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


@dataclass(frozen=True)
class ResolvedConfig:
    """Resolved configuration for one build cycle.

    All directory attributes are absolute. Instances are never mutated; a
    changed config file produces a brand new instance.

    Attributes:
        root: Project root directory.
        pages_dir: Directory containing page templates.
        layouts_dir: Directory containing layout templates.
        data_dir: Directory containing JSON/YAML data files.
        assets_dir: Directory containing CSS, JS, images and fonts.
        public_dir: Directory copied verbatim over the output root.
        output_dir: Directory the build writes into.
        site: Site metadata exposed to templates as ``site``.
        port: Port used by the development server.
    """

    root: Path
    pages_dir: Path
    layouts_dir: Path
    data_dir: Path
    assets_dir: Path
    public_dir: Path
    output_dir: Path
    site: dict[str, Any] = field(default_factory=dict)
    port: int = 3000

    @property
    def config_path(self) -> Path:
        """Absolute path of the configuration file for this project."""
        return self.root / CONFIG_FILENAME


def load_config(project_root: Path) -> ResolvedConfig:
    """Load ``cssg.yaml`` from a project root.

    Args:
        project_root: Root directory of the project.

    Returns:
        ResolvedConfig with defaults applied and paths made absolute.

    Raises:
        ConfigError: If the file is malformed or contains invalid values.
    """
    root = Path(project_root).resolve()
    config_path = root / CONFIG_FILENAME
    user: dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(config_path, f"Invalid YAML: {exc}") from exc
        except OSError as exc:
            raise ConfigError(config_path, f"Cannot read file: {exc}") from exc
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(config_path, "Top level must be a mapping")
        user = loaded

    merged = {**DEFAULT_CONFIG, **user}
    site = user.get("site") or {}
    if not isinstance(site, dict):
        raise ConfigError(config_path, "'site' must be a mapping")
    merged["site"] = {**DEFAULT_CONFIG["site"], **site}

    try:
        port = int(merged["port"])
    except (TypeError, ValueError) as exc:
        raise ConfigError(config_path, f"'port' must be an integer, got {merged['port']!r}") from exc

    dirs = {key: (root / str(merged[key])).resolve() for key in _DIR_KEYS}
    return ResolvedConfig(root=root, site=merged["site"], port=port, **dirs)


def base_path() -> str:
    """Return the URL prefix for generated links (``BASE_PATH`` env var)."""
    return os.environ.get("BASE_PATH", "").rstrip("/")
