"""Scoring orchestration across candidates and score cards."""

from __future__ import annotations

import contextvars
import threading
import time
import uuid
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

import pendulum
import structlog

from ..exceptions import ConfigurationError, ExternalDependencyError, InvalidInputError
from .candidate import Scorable
from .cards.base import ScoreCard
from .options import RequestOptions
from .values import Number, Result, ScoreValue


@dataclass(slots=True)
class ScoringFailure:
    """A (candidate, card) unit that produced no result."""

    candidate_id: str
    card_name: str
    error_type: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {
            "candidate_id": self.candidate_id,
            "card_name": self.card_name,
            "error_type": self.error_type,
            "message": self.message,
        }


@dataclass(slots=True)
class SkippedUnit:
    """A unit that never started because the run was cancelled."""

    candidate_id: str
    card_name: str


@dataclass(slots=True)
class RankedCandidate:
    """Candidate placement after combining its results."""

    candidate_id: str
    score: ScoreValue
    rank: int
    result_count: int


@dataclass(slots=True)
class ScoringReport:
    """Outcome of one orchestrated run; every unit has finished or was skipped."""

    candidates: list[Scorable]
    scheduled: int
    run_id: str | None = None
    completed: int = 0
    failures: list[ScoringFailure] = field(default_factory=list)
    skipped: list[SkippedUnit] = field(default_factory=list)
    cancelled: bool = False
    started_at: pendulum.DateTime | None = None
    finished_at: pendulum.DateTime | None = None

    def summaries(self) -> dict[str, Mapping[str, Result]]:
        return {
            candidate.candidate_id: candidate.get_score_summary().all_results()
            for candidate in self.candidates
        }

    def failures_for(self, candidate_id: str) -> list[ScoringFailure]:
        return [item for item in self.failures if item.candidate_id == candidate_id]

    def rank(self, weights: Mapping[str, Number] | None = None) -> list[RankedCandidate]:
        """Order candidates by exact tally (or weighted) score, highest first.

        Partial summaries rank on whatever results they hold.
        """
        scored: list[tuple[str, ScoreValue, int]] = []
        for candidate in self.candidates:
            summary = candidate.get_score_summary()
            total = summary.weighted_score(weights) if weights else summary.tally_score()
            scored.append((candidate.candidate_id, total, len(summary)))
        scored.sort(key=lambda item: (-item[1].value, item[0]))
        return [
            RankedCandidate(candidate_id=candidate_id, score=score, rank=index, result_count=count)
            for index, (candidate_id, score, count) in enumerate(scored, start=1)
        ]

    def to_dict(self, weights: Mapping[str, Number] | None = None) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "scheduled": self.scheduled,
            "completed": self.completed,
            "cancelled": self.cancelled,
            "started_at": self.started_at.to_iso8601_string() if self.started_at else None,
            "finished_at": self.finished_at.to_iso8601_string() if self.finished_at else None,
            "summaries": {
                candidate_id: {name: result.to_dict() for name, result in sorted(results.items())}
                for candidate_id, results in self.summaries().items()
            },
            "ranking": [
                {
                    "candidate_id": item.candidate_id,
                    "score": str(item.score),
                    "rank": item.rank,
                    "result_count": item.result_count,
                }
                for item in self.rank(weights)
            ],
            "failures": [item.to_dict() for item in self.failures],
            "skipped": [
                {"candidate_id": item.candidate_id, "card_name": item.card_name}
                for item in self.skipped
            ],
        }


class _UnitSkipped(Exception):
    """Raised inside a worker that picked up a unit after cancellation."""


class _ScoringUnit:
    """One (candidate, card) invocation.

    The lock makes commit and expiry mutually exclusive so a timed-out unit
    never writes into the summary afterwards.
    """

    def __init__(
        self,
        candidate: Scorable,
        card: ScoreCard,
        options: RequestOptions,
        cancel_event: threading.Event | None,
    ) -> None:
        self.candidate = candidate
        self.card = card
        self._options = options
        self._cancel_event = cancel_event
        self._lock = threading.Lock()
        self._expired = False
        self._committed = False
        self.started: float | None = None

    def run(self) -> Result:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise _UnitSkipped()
        self.started = time.monotonic()
        summary = self.card.score_with(self.candidate, self._options)
        result = summary.get_result(self.card.name) if summary is not None else None
        if result is None:
            raise InvalidInputError(f"{self.card.name} produced no result")

        timeout = self._options.timeout_seconds
        if timeout is not None and time.monotonic() - self.started > timeout:
            self.expire()
        with self._lock:
            if self._expired:
                raise ExternalDependencyError(f"{self.card.name} timed out after {timeout}s")
            self.candidate.get_score_summary().add_result(self.card.name, result)
            self._committed = True
        return result

    def overdue(self, timeout: float, now: float) -> bool:
        return self.started is not None and now - self.started > timeout

    def expire(self) -> bool:
        with self._lock:
            if self._committed:
                return False
            self._expired = True
            return True


class ScoringOrchestrator:
    """Runs every enabled score card over every candidate.

    Cards are shared across worker threads without locking; each result is
    committed into its own candidate's summary exactly once.
    """

    DEFAULT_MAX_WORKERS = 4
    _POLL_SECONDS = 0.05

    def __init__(
        self,
        score_cards: Iterable[ScoreCard],
        *,
        max_workers: int | None = None,
    ) -> None:
        self._score_cards = tuple(score_cards)
        self._max_workers = max_workers or self.DEFAULT_MAX_WORKERS
        self._logger = structlog.get_logger(__name__)

        invalid = [repr(card) for card in self._score_cards if not isinstance(card, ScoreCard)]
        if invalid:
            raise ConfigurationError("Objects do not implement ScoreCard", invalid)
        if self._max_workers < 1:
            raise ConfigurationError("max_workers must be at least 1")

        names = [card.name for card in self._score_cards]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            self._logger.warning("scoring.duplicate_card_names", names=duplicates)

    @property
    def score_cards(self) -> tuple[ScoreCard, ...]:
        return self._score_cards

    def run(
        self,
        candidates: Iterable[Scorable],
        options: RequestOptions | Mapping[str, Any] | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> ScoringReport:
        request_options = RequestOptions.from_mapping(options)
        candidate_list = list(candidates)
        not_scorable = [repr(item) for item in candidate_list if not isinstance(item, Scorable)]
        if not_scorable:
            raise InvalidInputError(f"Candidates are not scorable: {not_scorable}")

        cards = [card for card in self._score_cards if request_options.is_enabled(card.name)]
        self._validate_overrides(cards, request_options)

        units = [
            _ScoringUnit(candidate, card, request_options, cancel_event)
            for candidate in candidate_list
            for card in cards
        ]
        report = ScoringReport(
            candidates=candidate_list,
            scheduled=len(units),
            run_id=uuid.uuid4().hex,
            started_at=pendulum.now(),
        )
        workers = request_options.max_workers or self._max_workers

        with structlog.contextvars.bound_contextvars(run_id=report.run_id):
            self._logger.info(
                "scoring.run.start",
                candidates=len(candidate_list),
                cards=[card.name for card in cards],
                units=len(units),
                workers=workers,
            )

            if workers == 1:
                self._run_inline(units, report, cancel_event)
            else:
                self._run_pooled(units, report, request_options, cancel_event, workers)

            report.finished_at = pendulum.now()
            if report.cancelled:
                self._logger.warning("scoring.run.cancelled", skipped=len(report.skipped))
            self._logger.info(
                "scoring.run.complete",
                scheduled=report.scheduled,
                completed=report.completed,
                failures=len(report.failures),
                skipped=len(report.skipped),
                duration_ms=round(report.finished_at.diff(report.started_at).total_seconds() * 1000, 3),
            )
        return report

    @staticmethod
    def _validate_overrides(cards: list[ScoreCard], options: RequestOptions) -> None:
        errors: list[str] = []
        for card in cards:
            resolve = getattr(card, "resolve_config", None)
            if resolve is None:
                continue
            try:
                resolve(options)
            except ConfigurationError as exc:
                errors.extend(exc.errors or [str(exc)])
        if errors:
            raise ConfigurationError("Invalid request options", errors)

    def _run_inline(
        self,
        units: list[_ScoringUnit],
        report: ScoringReport,
        cancel_event: threading.Event | None,
    ) -> None:
        for unit in units:
            if cancel_event is not None and cancel_event.is_set():
                report.cancelled = True
                report.skipped.append(_skipped(unit))
                continue
            try:
                unit.run()
            except Exception as exc:  # noqa: BLE001
                self._record_failure(report, unit, exc)
            else:
                report.completed += 1

    def _run_pooled(
        self,
        units: list[_ScoringUnit],
        report: ScoringReport,
        options: RequestOptions,
        cancel_event: threading.Event | None,
        workers: int,
    ) -> None:
        timeout = options.timeout_seconds
        poll = self._POLL_SECONDS if (timeout is not None or cancel_event is not None) else None
        if timeout is not None:
            poll = min(poll, timeout)

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="prank-score")
        futures: dict[Future, _ScoringUnit] = {
            executor.submit(contextvars.copy_context().run, unit.run): unit for unit in units
        }
        pending = set(futures)
        try:
            while pending:
                if cancel_event is not None and cancel_event.is_set():
                    for future in list(pending):
                        if future.cancel():
                            report.cancelled = True
                            pending.discard(future)
                            report.skipped.append(_skipped(futures[future]))

                done, pending = wait(pending, timeout=poll, return_when=FIRST_COMPLETED)
                for future in done:
                    self._collect(future, futures[future], report)

                if timeout is not None:
                    now = time.monotonic()
                    for future in list(pending):
                        unit = futures[future]
                        if unit.overdue(timeout, now) and unit.expire():
                            pending.discard(future)
                            self._record_failure(
                                report,
                                unit,
                                ExternalDependencyError(f"{unit.card.name} timed out after {timeout}s"),
                            )
        finally:
            # Timed-out units keep running but can no longer commit.
            executor.shutdown(wait=False, cancel_futures=True)

    def _collect(self, future: Future, unit: _ScoringUnit, report: ScoringReport) -> None:
        if future.cancelled():
            report.cancelled = True
            report.skipped.append(_skipped(unit))
            return
        try:
            future.result()
        except _UnitSkipped:
            report.cancelled = True
            report.skipped.append(_skipped(unit))
        except Exception as exc:  # noqa: BLE001
            self._record_failure(report, unit, exc)
        else:
            report.completed += 1

    def _record_failure(self, report: ScoringReport, unit: _ScoringUnit, exc: Exception) -> None:
        failure = ScoringFailure(
            candidate_id=unit.candidate.candidate_id,
            card_name=unit.card.name,
            error_type=type(exc).__name__,
            message=str(exc),
        )
        report.failures.append(failure)
        self._logger.warning(
            "scoring.unit.failed",
            candidate_id=failure.candidate_id,
            card=failure.card_name,
            error_type=failure.error_type,
            error=failure.message,
        )


def _skipped(unit: _ScoringUnit) -> SkippedUnit:
    return SkippedUnit(candidate_id=unit.candidate.candidate_id, card_name=unit.card.name)


__all__ = [
    "RankedCandidate",
    "ScoringFailure",
    "ScoringOrchestrator",
    "ScoringReport",
    "SkippedUnit",
]
