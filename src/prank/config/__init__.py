"""Configuration management utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ..exceptions import ConfigurationError


class ConfigManager:
    """Simple YAML-backed configuration loader."""

    SUFFIXES = (".yaml", ".yml")

    def __init__(self, base_path: str | Path):
        self._base_path = Path(base_path)

    def load(self, name: str) -> dict[str, Any]:
        """Load a YAML configuration by name without file extension."""
        for suffix in self.SUFFIXES:
            path = self._base_path / f"{name}{suffix}"
            if path.exists():
                return self.read(path)
        raise FileNotFoundError(f"No configuration named {name!r} under {self._base_path}")

    @staticmethod
    def read(path: str | Path) -> dict[str, Any]:
        """Read one YAML file; an empty file yields an empty mapping."""
        with Path(path).open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Config file {path} must be a YAML mapping")
        return loaded


__all__ = ["ConfigManager"]
