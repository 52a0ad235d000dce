from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import pytest
import structlog
from structlog.testing import capture_logs

from prank.core import (
    BaseScoreCard,
    ExampleObject,
    ExampleScoreCard,
    Indices,
    PriceScoreCard,
    RequestOptions,
    Result,
    ResultBuilder,
    ScoreValue,
    ScoringOrchestrator,
)
from prank.exceptions import ConfigurationError, InvalidInputError


@dataclass(frozen=True)
class StubConfig:
    name: str
    value: int = 1
    delay: float = 0.0


class StubScoreCard(BaseScoreCard):
    def __init__(self, name: str, *, value: int = 1, delay: float = 0.0):
        super().__init__(StubConfig(name=name, value=value, delay=delay))

    def compute(self, candidate: Any, options: RequestOptions) -> Result:
        config = self.resolve_config(options)
        if config.delay:
            time.sleep(config.delay)
        return ResultBuilder(config.name, config.value).set_position(Indices(0)).build()


class CancellingScoreCard(StubScoreCard):
    def __init__(self, name: str, event: threading.Event):
        super().__init__(name)
        self._event = event

    def compute(self, candidate: Any, options: RequestOptions) -> Result:
        self._event.set()
        return super().compute(candidate, options)


def build_candidates() -> list[ExampleObject]:
    return [
        ExampleObject(candidate_id="C-1", average_shipping_time=10, shipping_cost=Decimal("20.00"), price=Decimal("250")),
        ExampleObject(candidate_id="C-2", average_shipping_time=3, shipping_cost=Decimal("5.00"), price=Decimal("900")),
        ExampleObject(candidate_id="C-3", average_shipping_time=7, shipping_cost=Decimal("0.50"), price=Decimal("40")),
    ]


@pytest.mark.parametrize("max_workers", [1, 4])
def test_every_pair_is_scored_once_and_matches_standalone(max_workers: int):
    cards = [ExampleScoreCard(), PriceScoreCard()]
    orchestrator = ScoringOrchestrator(cards, max_workers=max_workers)
    candidates = build_candidates()

    report = orchestrator.run(candidates)

    assert report.scheduled == 6
    assert report.completed == 6
    assert report.failures == []
    for candidate in candidates:
        results = candidate.get_score_summary().all_results()
        assert set(results) == {"SolutionPriceScoreCard", "PriceScoreCard"}
        for card in cards:
            standalone = card.score(candidate).get_result(card.name)
            assert results[card.name] == standalone


def test_many_cards_on_one_candidate_concurrently():
    cards = [StubScoreCard(f"card-{idx}", value=idx, delay=0.01) for idx in range(20)]
    orchestrator = ScoringOrchestrator(cards, max_workers=8)
    candidate = ExampleObject(candidate_id="C-1")

    report = orchestrator.run([candidate])

    summary = candidate.get_score_summary()
    assert report.completed == 20
    assert summary.names() == frozenset(card.name for card in cards)
    assert summary.tally_score() == ScoreValue(sum(range(20)))


def test_failure_is_isolated_to_one_unit():
    orchestrator = ScoringOrchestrator([ExampleScoreCard(), PriceScoreCard()])
    broken = ExampleObject(candidate_id="C-broken", price=Decimal("100"))
    healthy = build_candidates()[0]

    with capture_logs() as logs:
        report = orchestrator.run([broken, healthy])

    assert report.completed == 3
    assert len(report.failures) == 1
    failure = report.failures[0]
    assert failure.candidate_id == "C-broken"
    assert failure.card_name == "SolutionPriceScoreCard"
    assert failure.error_type == "InvalidInputError"
    assert set(broken.get_score_summary().names()) == {"PriceScoreCard"}
    assert len(healthy.get_score_summary()) == 2
    assert any(entry["event"] == "scoring.unit.failed" for entry in logs)


def test_sequential_runs_are_deterministic():
    orchestrator = ScoringOrchestrator([ExampleScoreCard(), PriceScoreCard()])

    first = orchestrator.run(build_candidates())
    second = orchestrator.run(build_candidates())

    first_view = {key: dict(value) for key, value in first.summaries().items()}
    second_view = {key: dict(value) for key, value in second.summaries().items()}
    assert first_view == second_view


def test_disabled_cards_are_not_scheduled():
    orchestrator = ScoringOrchestrator([ExampleScoreCard(), PriceScoreCard()])
    candidates = build_candidates()

    report = orchestrator.run(candidates, {"disabled_cards": ["PriceScoreCard"]})

    assert report.scheduled == 3
    assert all(c.get_score_summary().names() == {"SolutionPriceScoreCard"} for c in candidates)


def test_malformed_options_rejected_before_any_work():
    orchestrator = ScoringOrchestrator([ExampleScoreCard()])
    candidates = build_candidates()

    with pytest.raises(ConfigurationError):
        orchestrator.run(candidates, {"timeout_seconds": "soon"})
    with pytest.raises(ConfigurationError):
        orchestrator.run(candidates, {"overrides": {"SolutionPriceScoreCard": {"bogus": 1}}})

    assert all(len(c.get_score_summary()) == 0 for c in candidates)


@pytest.mark.parametrize(
    "card, overrides",
    [
        (ExampleScoreCard(), {"score_adjustment": "abc"}),
        (ExampleScoreCard(), {"score_adjustment": True}),
        (ExampleScoreCard(), {"position_adjustment": 1.5}),
        (ExampleScoreCard(), {"position_adjustment": -1}),
        (ExampleScoreCard(), {"average_adjustment": "x"}),
        (ExampleScoreCard(), {"standard_deviation_adjustment": None}),
        (PriceScoreCard(), {"ceiling": "lots"}),
        (PriceScoreCard(), {"bucket_size": "nan"}),
    ],
)
def test_mistyped_override_values_rejected_before_any_work(
    card: BaseScoreCard, overrides: dict[str, Any]
):
    orchestrator = ScoringOrchestrator([card], max_workers=2)
    candidates = build_candidates()

    with pytest.raises(ConfigurationError):
        orchestrator.run(candidates, {"overrides": {card.name: overrides}})

    assert all(len(c.get_score_summary()) == 0 for c in candidates)


class RunIdRecordingCard(StubScoreCard):
    def __init__(self, name: str):
        super().__init__(name)
        self.seen: list[Any] = []
        self._lock = threading.Lock()

    def compute(self, candidate: Any, options: RequestOptions) -> Result:
        with self._lock:
            self.seen.append(structlog.contextvars.get_contextvars().get("run_id"))
        return super().compute(candidate, options)


@pytest.mark.parametrize("max_workers", [1, 4])
def test_run_id_is_bound_for_every_unit(max_workers: int):
    card = RunIdRecordingCard("Recorder")
    orchestrator = ScoringOrchestrator([card], max_workers=max_workers)

    report = orchestrator.run(build_candidates())

    assert report.run_id
    assert report.to_dict()["run_id"] == report.run_id
    assert card.seen == [report.run_id] * 3
    assert "run_id" not in structlog.contextvars.get_contextvars()


def test_failures_for_filters_by_candidate():
    orchestrator = ScoringOrchestrator([ExampleScoreCard(), PriceScoreCard()])
    broken = ExampleObject(candidate_id="C-broken")
    healthy = build_candidates()[0]

    report = orchestrator.run([broken, healthy])

    assert {item.card_name for item in report.failures_for("C-broken")} == {
        "SolutionPriceScoreCard",
        "PriceScoreCard",
    }
    assert report.failures_for(healthy.candidate_id) == []


def test_non_card_objects_are_rejected():
    with pytest.raises(ConfigurationError):
        ScoringOrchestrator([object()])


def test_non_scorable_candidates_are_rejected():
    with pytest.raises(InvalidInputError):
        ScoringOrchestrator([ExampleScoreCard()]).run([{"candidate_id": "C-1"}])


def test_cancel_before_start_skips_everything():
    orchestrator = ScoringOrchestrator([ExampleScoreCard(), PriceScoreCard()], max_workers=2)
    event = threading.Event()
    event.set()
    candidates = build_candidates()

    report = orchestrator.run(candidates, cancel_event=event)

    assert report.cancelled is True
    assert report.completed == 0
    assert len(report.skipped) == report.scheduled == 6
    assert all(len(c.get_score_summary()) == 0 for c in candidates)


def test_cancel_mid_run_lets_in_flight_unit_finish():
    event = threading.Event()
    orchestrator = ScoringOrchestrator(
        [CancellingScoreCard("first", event), StubScoreCard("second")],
        max_workers=1,
    )
    candidate = ExampleObject(candidate_id="C-1")

    report = orchestrator.run([candidate], cancel_event=event)

    assert report.cancelled is True
    assert report.completed == 1
    assert [(item.candidate_id, item.card_name) for item in report.skipped] == [("C-1", "second")]
    assert candidate.get_score_summary().names() == {"first"}


def test_timed_out_unit_is_recorded_and_never_commits():
    orchestrator = ScoringOrchestrator(
        [StubScoreCard("fast"), StubScoreCard("slow", delay=0.5)],
        max_workers=2,
    )
    candidate = ExampleObject(candidate_id="C-1")

    started = time.monotonic()
    report = orchestrator.run([candidate], {"timeout_seconds": 0.05})
    elapsed = time.monotonic() - started

    assert elapsed < 0.5
    assert report.completed == 1
    assert [(f.card_name, f.error_type) for f in report.failures] == [("slow", "ExternalDependencyError")]
    time.sleep(0.6)
    assert candidate.get_score_summary().names() == {"fast"}


def test_inline_timeout_discards_late_result():
    orchestrator = ScoringOrchestrator([StubScoreCard("slow", delay=0.05)], max_workers=1)
    candidate = ExampleObject(candidate_id="C-1")

    report = orchestrator.run([candidate], RequestOptions(timeout_seconds=0.01))

    assert report.failures[0].error_type == "ExternalDependencyError"
    assert len(candidate.get_score_summary()) == 0


def test_duplicate_card_names_warn_and_last_write_wins():
    with capture_logs() as logs:
        orchestrator = ScoringOrchestrator(
            [StubScoreCard("dup", value=1), StubScoreCard("dup", value=2)],
            max_workers=1,
        )
        candidate = ExampleObject(candidate_id="C-1")
        report = orchestrator.run([candidate])

    events = [entry["event"] for entry in logs]
    assert "scoring.duplicate_card_names" in events
    assert "score_summary.name_collision" in events
    assert report.completed == 2
    assert candidate.get_score_summary().get_result("dup").score == ScoreValue(2)


def test_rank_orders_by_exact_tally_and_weights():
    orchestrator = ScoringOrchestrator([ExampleScoreCard(), PriceScoreCard()])
    candidates = build_candidates()
    candidates.append(ExampleObject(candidate_id="C-partial", price=Decimal("0")))

    report = orchestrator.run(candidates)

    ranking = report.rank()
    assert [item.candidate_id for item in ranking] == ["C-partial", "C-3", "C-1", "C-2"]
    assert ranking[0].score == ScoreValue(1000)
    assert ranking[0].result_count == 1
    assert [item.rank for item in ranking] == [1, 2, 3, 4]

    by_shipping = report.rank({"SolutionPriceScoreCard": 1})
    assert [item.candidate_id for item in by_shipping][:3] == ["C-1", "C-3", "C-2"]


def test_report_to_dict_is_json_friendly():
    report = ScoringOrchestrator([ExampleScoreCard()]).run(build_candidates()[:1])

    rendered = report.to_dict()

    entry = rendered["summaries"]["C-1"]["SolutionPriceScoreCard"]
    assert entry["score"] == "15"
    assert entry["statistics"]["average"] == "22.00"
    assert rendered["ranking"][0]["candidate_id"] == "C-1"
    assert rendered["started_at"] is not None
