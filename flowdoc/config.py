"""Configuration loading for flowdoc (.flowdoc.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .render import DEFAULT_COMMAND, DEFAULT_IMAGE_FORMAT

CONFIG_FILENAME = ".flowdoc.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class RendererConfig:
    """External flow renderer settings."""

    command: str = DEFAULT_COMMAND
    image_format: str = DEFAULT_IMAGE_FORMAT


@dataclass
class FlowDocConfig:
    """Represents the settings defined in .flowdoc.yml."""

    root: Path
    local_links: bool = False
    project_root: Optional[Path] = None
    vendor_dir: str = "vendor"
    search_roots: List[Path] = field(default_factory=list)
    renderer: RendererConfig = field(default_factory=RendererConfig)


def load_config(config_path: Path) -> FlowDocConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return FlowDocConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = FlowDocConfig(root=root)
    local_links = _as_bool(data.get("local_links"))
    if local_links is not None:
        config.local_links = local_links

    project_root = _as_str(data.get("project_root"))
    if project_root:
        config.project_root = (root / project_root).resolve()

    vendor_dir = _as_str(data.get("vendor_dir"))
    if vendor_dir:
        config.vendor_dir = vendor_dir

    config.search_roots = [
        (root / entry).resolve() for entry in _as_str_list(data.get("search_roots"))
    ]

    renderer_data = _as_dict(data.get("renderer"))
    if renderer_data:
        command = _as_str(renderer_data.get("command"))
        image_format = _as_str(renderer_data.get("image_format"))
        config.renderer = RendererConfig(
            command=command or DEFAULT_COMMAND,
            image_format=(image_format or DEFAULT_IMAGE_FORMAT).lstrip("."),
        )

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = ["CONFIG_FILENAME", "ConfigError", "FlowDocConfig", "RendererConfig", "load_config"]
