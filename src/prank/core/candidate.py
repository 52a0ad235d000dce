"""Candidate abstractions consumed by score cards."""

from __future__ import annotations

import threading
from decimal import Decimal
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, PrivateAttr

from .summary import ScoreSummary


@runtime_checkable
class Scorable(Protocol):
    """Anything a score card can evaluate and record into."""

    candidate_id: str

    def get_score_summary(self) -> ScoreSummary:
        """Return the owned summary, creating it on first access."""


class ScoringCandidate(BaseModel):
    """Base model for candidates that own a ScoreSummary."""

    candidate_id: str

    model_config = ConfigDict(extra="allow")

    _summary: ScoreSummary | None = PrivateAttr(default=None)
    _summary_lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)

    def get_score_summary(self) -> ScoreSummary:
        summary = self._summary
        if summary is None:
            with self._summary_lock:
                if self._summary is None:
                    self._summary = ScoreSummary(self.candidate_id)
                summary = self._summary
        return summary


class ExampleObject(ScoringCandidate):
    """Listing with shipping and price attributes."""

    average_shipping_time: int | None = None
    shipping_cost: Decimal | None = None
    price: Decimal | None = None


__all__ = ["ExampleObject", "Scorable", "ScoringCandidate"]
