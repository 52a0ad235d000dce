"""Pydantic schema definitions for application configuration."""

from __future__ import annotations

from .config import (
    AppConfig,
    CardsConfig,
    ExampleCardSettings,
    OrchestratorConfig,
    PriceCardSettings,
    load_config,
)

__all__ = [
    "AppConfig",
    "CardsConfig",
    "ExampleCardSettings",
    "OrchestratorConfig",
    "PriceCardSettings",
    "load_config",
]
