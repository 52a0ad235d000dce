"""Pydantic configuration schema for YAML input."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import ConfigurationError

CardKey = Literal["example", "price"]


class ExampleCardSettings(BaseModel):
    name: str = Field(default="SolutionPriceScoreCard", min_length=1)
    score_adjustment: int = 5
    position_adjustment: int = Field(default=3, ge=0)
    average_adjustment: Decimal = Decimal("2")
    standard_deviation_adjustment: Decimal = Field(default=Decimal("1.0"), ge=0)

    model_config = ConfigDict(extra="forbid")


class PriceCardSettings(BaseModel):
    name: str = Field(default="PriceScoreCard", min_length=1)
    ceiling: Decimal = Field(default=Decimal("1000"), ge=0)
    bucket_size: Decimal = Field(default=Decimal("100"), gt=0)

    model_config = ConfigDict(extra="forbid")


class CardsConfig(BaseModel):
    example: ExampleCardSettings | None = None
    price: PriceCardSettings | None = None

    model_config = ConfigDict(extra="forbid")


class OrchestratorConfig(BaseModel):
    max_workers: int | None = Field(default=None, ge=1)

    model_config = ConfigDict(extra="forbid")


class AppConfig(BaseModel):
    orchestrator: OrchestratorConfig = Field(default_factory=OrchestratorConfig)
    cards: CardsConfig = Field(default_factory=CardsConfig)
    enabled: list[CardKey] | None = None
    request: dict[str, Any] | None = None

    model_config = ConfigDict(extra="forbid")

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        orchestrator = self.orchestrator.model_dump(exclude_none=True)
        if orchestrator or self.request:
            settings["core"] = dict(orchestrator)
            if self.request:
                settings["core"]["request"] = dict(self.request)
        card_settings = self.cards.model_dump(exclude_none=True)
        if card_settings:
            settings["cards"] = card_settings
        if self.enabled is not None:
            settings["enabled"] = list(self.enabled)
        return settings


def load_config(raw: Any) -> AppConfig:
    if not isinstance(raw, dict):
        raise ConfigurationError("Config must be a mapping")
    try:
        return AppConfig.model_validate(raw)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
        raise ConfigurationError("Invalid configuration", errors) from exc
