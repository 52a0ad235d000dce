"""Per-candidate aggregation of score card results."""

from __future__ import annotations

import threading
from types import MappingProxyType
from typing import Iterable, Mapping

import structlog

from ..exceptions import InvalidInputError
from .values import Number, Result, ScoreValue, to_decimal


class ScoreSummary:
    """Thread-safe map of score card name to Result.

    Each summary carries its own lock, held only around the dictionary
    operation, so cards scoring different candidates never contend.
    """

    def __init__(self, owner_id: str | None = None) -> None:
        self._owner_id = owner_id
        self._results: dict[str, Result] = {}
        self._lock = threading.Lock()
        self._logger = structlog.get_logger(__name__)

    @property
    def owner_id(self) -> str | None:
        return self._owner_id

    def add_result(self, name: str, result: Result) -> None:
        """Insert ``result`` under ``name``; an existing entry is replaced."""
        if not isinstance(name, str) or not name:
            raise InvalidInputError("score card name must be a non-empty string", field="name")
        if not isinstance(result, Result):
            raise InvalidInputError(
                f"expected Result, got {type(result).__name__}", field="result"
            )

        with self._lock:
            previous = self._results.get(name)
            self._results[name] = result

        if previous is not None:
            # Two cards sharing a name, or one card re-run: last write wins.
            self._logger.warning(
                "score_summary.name_collision",
                name=name,
                owner=self._owner_id,
                previous_score=str(previous.score),
                score=str(result.score),
            )

    def get_result(self, name: str) -> Result | None:
        with self._lock:
            return self._results.get(name)

    def all_results(self) -> Mapping[str, Result]:
        """Return a read-only point-in-time copy of every entry."""
        with self._lock:
            snapshot = dict(self._results)
        return MappingProxyType(snapshot)

    def names(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._results)

    def tally_score(self, names: Iterable[str] | None = None) -> ScoreValue:
        """Exact sum of scores across all cards, or only the named ones.

        Names without an entry are skipped so partial summaries still tally.
        """
        results = self.all_results()
        selected = results.keys() if names is None else [n for n in names if n in results]
        return ScoreValue.sum(results[name].score for name in selected)

    def weighted_score(self, weights: Mapping[str, Number]) -> ScoreValue:
        """Exact weighted sum; cards absent from the summary contribute nothing."""
        results = self.all_results()
        total = ScoreValue.zero()
        for name, weight in weights.items():
            result = results.get(name)
            if result is None:
                continue
            total = total + result.score * to_decimal(weight, field=f"weights.{name}")
        return total

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._results

    def __repr__(self) -> str:
        return f"ScoreSummary(owner_id={self._owner_id!r}, names={sorted(self.names())!r})"


def detached_summary(result: Result, owner_id: str | None = None) -> ScoreSummary:
    """Build a standalone summary holding a single result."""
    summary = ScoreSummary(owner_id)
    summary.add_result(result.score_card_name, result)
    return summary


__all__ = ["ScoreSummary", "detached_summary"]

