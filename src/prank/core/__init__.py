"""Core scoring engine components."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .candidate import ExampleObject, Scorable, ScoringCandidate
from .cards import (
    BaseScoreCard,
    ExampleScoreCard,
    ExampleScoreCardConfig,
    PriceScoreCard,
    PriceScoreCardConfig,
    ScoreCard,
)
from .options import RequestOptions
from .scoring import (
    RankedCandidate,
    ScoringFailure,
    ScoringOrchestrator,
    ScoringReport,
    SkippedUnit,
)
from .summary import ScoreSummary
from .values import (
    Indices,
    Result,
    ResultBuilder,
    ScoreValue,
    Statistics,
    StatisticsBuilder,
)

__all__ = [
    "BaseScoreCard",
    "ExampleObject",
    "ExampleScoreCard",
    "ExampleScoreCardConfig",
    "Indices",
    "PriceScoreCard",
    "PriceScoreCardConfig",
    "RankedCandidate",
    "RequestOptions",
    "Result",
    "ResultBuilder",
    "Scorable",
    "ScoreCard",
    "ScoreSummary",
    "ScoreValue",
    "ScoringCandidate",
    "ScoringFailure",
    "ScoringOrchestrator",
    "ScoringReport",
    "SkippedUnit",
    "Statistics",
    "StatisticsBuilder",
]
