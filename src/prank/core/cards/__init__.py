"""Score card implementations."""

from .base import BaseScoreCard, ScoreCard
from .example import ExampleScoreCard, ExampleScoreCardConfig
from .price import PriceScoreCard, PriceScoreCardConfig

__all__ = [
    "BaseScoreCard",
    "ScoreCard",
    "ExampleScoreCard",
    "ExampleScoreCardConfig",
    "PriceScoreCard",
    "PriceScoreCardConfig",
]
