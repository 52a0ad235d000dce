"""Dependency injection container for the scoring engine."""

from __future__ import annotations

from typing import Any

from dependency_injector import containers, providers

from .core import (
    ExampleScoreCard,
    ExampleScoreCardConfig,
    PriceScoreCard,
    PriceScoreCardConfig,
    RequestOptions,
    ScoringOrchestrator,
)
from .exceptions import ConfigurationError
from .pipeline import CandidateLoader, ScoringPipeline


class ScoringContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    example_card = providers.Singleton(ExampleScoreCard)
    price_card = providers.Singleton(PriceScoreCard)

    score_cards = providers.List(
        example_card,
        price_card,
    )

    orchestrator = providers.Singleton(
        ScoringOrchestrator,
        score_cards=score_cards,
        max_workers=config.max_workers,
    )

    request_options = providers.Callable(
        RequestOptions.from_mapping,
        config.request,
    )

    pipeline = providers.Factory(
        ScoringPipeline,
        orchestrator=orchestrator,
        loader=providers.Factory(CandidateLoader),
    )


def create_container(*, settings: dict[str, Any] | None = None) -> ScoringContainer:
    """Instantiate container with optional overrides."""

    container = ScoringContainer()

    if not settings:
        return container

    core_settings = settings.get("core", {}) if isinstance(settings, dict) else {}
    if core_settings:
        container.config.override(core_settings)

    card_settings = settings.get("cards", {}) if isinstance(settings, dict) else {}

    if "example" in card_settings:
        example_config = ExampleScoreCardConfig(**card_settings["example"])
        container.example_card.override(
            providers.Singleton(ExampleScoreCard, config=example_config)
        )

    if "price" in card_settings:
        price_config = PriceScoreCardConfig(**card_settings["price"])
        container.price_card.override(
            providers.Singleton(PriceScoreCard, config=price_config)
        )

    enabled = settings.get("enabled") if isinstance(settings, dict) else None
    if enabled is not None:
        available = {
            "example": container.example_card,
            "price": container.price_card,
        }
        unknown = sorted(set(enabled) - set(available))
        if unknown:
            raise ConfigurationError("Unknown score cards enabled", unknown)
        container.score_cards.override(
            providers.List(*(available[key] for key in enabled))
        )

    return container
