"""Scoring pipeline assembly and execution."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Mapping

import pendulum
import structlog
from pydantic import ValidationError

from . import __version__
from .core import ExampleObject, RequestOptions, ScoringOrchestrator, ScoringReport
from .exceptions import InvalidInputError


class CandidateLoadError(InvalidInputError):
    """Raised when candidate loading encounters invalid records."""

    def __init__(self, errors: list[str], partial: list[ExampleObject]):
        super().__init__("Candidate loading failed")
        self.errors = errors
        self.partial = partial

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Candidate loading failed: {self.errors}"


class CandidateLoader:
    """Load candidates from JSON lines."""

    def __init__(self, model: type[ExampleObject] = ExampleObject):
        self._model = model

    def load(self, path: Path) -> list[ExampleObject]:
        candidates: list[ExampleObject] = []
        errors: list[str] = []
        seen: set[str] = set()
        with path.open("r", encoding="utf-8") as handle:
            for idx, line in enumerate(handle, start=1):
                raw = line.strip()
                if not raw:
                    continue
                try:
                    record = json.loads(raw, parse_float=str)
                except json.JSONDecodeError as exc:
                    errors.append(f"line {idx}: invalid JSON ({exc})")
                    continue
                if not isinstance(record, dict):
                    errors.append(f"line {idx}: record must be a JSON object")
                    continue
                try:
                    candidate = self._model.model_validate(record)
                except ValidationError as exc:
                    errors.append(f"line {idx}: {exc.error_count()} validation error(s) {exc.errors()[0]['msg']}")
                    continue
                if candidate.candidate_id in seen:
                    errors.append(f"line {idx}: duplicate candidate_id '{candidate.candidate_id}'")
                    continue
                seen.add(candidate.candidate_id)
                candidates.append(candidate)
        if errors:
            raise CandidateLoadError(errors, candidates)
        return candidates


class OutputWriter:
    """Persist scoring reports."""

    def write(self, path: Path, payload: dict | list[dict]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )


class ScoringPipeline:
    """Load candidates, score them and write the report."""

    def __init__(
        self,
        *,
        orchestrator: ScoringOrchestrator,
        loader: CandidateLoader | None = None,
        writer: OutputWriter | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._loader = loader or CandidateLoader()
        self._writer = writer or OutputWriter()
        self._logger = structlog.get_logger(__name__)

    def run(
        self,
        *,
        candidates_path: Path,
        output_path: Path | None = None,
        options: RequestOptions | Mapping[str, Any] | None = None,
        weights: Mapping[str, Any] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> dict[str, Any]:
        request_options = RequestOptions.from_mapping(options)
        load_errors: list[str] = []
        try:
            candidates = self._loader.load(candidates_path)
        except CandidateLoadError as exc:
            candidates = exc.partial
            load_errors.extend(exc.errors)
            self._logger.warning("candidates.partial_load", errors=exc.errors)

        report: ScoringReport = self._orchestrator.run(
            candidates,
            request_options,
            cancel_event=cancel_event,
        )
        payload = report.to_dict(weights)
        payload["metadata"] = {
            "candidate_count": len(candidates),
            "load_errors": load_errors,
            "options": request_options.to_dict(),
            "timestamp": pendulum.now().to_iso8601_string(),
            "app_version": __version__,
        }

        for entry in payload["ranking"]:
            self._logger.info(
                "scoring.result",
                failures=len(report.failures_for(entry["candidate_id"])),
                **entry,
            )

        if output_path is not None:
            self._writer.write(output_path, payload)
        return payload
