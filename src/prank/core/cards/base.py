"""Score card contract and shared entry points."""

from __future__ import annotations

from dataclasses import fields, replace
from decimal import Decimal
from typing import Any, Mapping, Protocol, TypeVar, runtime_checkable

from ...exceptions import ConfigurationError, InvalidInputError
from ..candidate import Scorable
from ..options import RequestOptions
from ..summary import ScoreSummary, detached_summary
from ..values import Result, to_decimal

ConfigT = TypeVar("ConfigT")


def config_name(value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise ConfigurationError(f"Score card name must be a non-empty string, got {value!r}")
    return value


def config_int(value: Any, field: str, *, minimum: int | None = None) -> int:
    """Validate an integer adjustment, rejecting bools and floats."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{field} must be an int, got {value!r}")
    if minimum is not None and value < minimum:
        raise ConfigurationError(f"{field} must be >= {minimum}, got {value}")
    return value


def config_decimal(value: Any, field: str, *, minimum: Decimal | None = None, strict: bool = False) -> Decimal:
    """Validate a decimal adjustment; ``strict`` makes ``minimum`` exclusive."""
    try:
        result = to_decimal(value, field=field)
    except InvalidInputError as exc:
        raise ConfigurationError(str(exc)) from exc
    if minimum is not None and (result <= minimum if strict else result < minimum):
        bound = ">" if strict else ">="
        raise ConfigurationError(f"{field} must be {bound} {minimum}, got {result}")
    return result


@runtime_checkable
class ScoreCard(Protocol):
    """Stateless strategy scoring one dimension of a candidate."""

    name: str

    def score(self, candidate: Scorable) -> ScoreSummary:
        """Evaluate without touching the candidate."""

    def score_with(self, candidate: Scorable, options: RequestOptions | Mapping[str, Any] | None) -> ScoreSummary:
        """Evaluate under per-request options without touching the candidate."""

    def update_objects_with_score(
        self,
        candidate: Scorable,
        options: RequestOptions | Mapping[str, Any] | None = None,
    ) -> None:
        """Evaluate and record the result into the candidate's summary."""


class BaseScoreCard:
    """Routes every entry point through one pure ``compute`` call.

    Subclasses hold only a frozen config and implement ``compute``; the
    read-only and mutating entry points therefore always agree.
    """

    def __init__(self, config: Any) -> None:
        self._config = config

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def config(self) -> Any:
        return self._config

    def compute(self, candidate: Scorable, options: RequestOptions) -> Result:
        raise NotImplementedError

    def score(self, candidate: Scorable) -> ScoreSummary:
        return self.score_with(candidate, None)

    def score_with(
        self,
        candidate: Scorable,
        options: RequestOptions | Mapping[str, Any] | None,
    ) -> ScoreSummary:
        result = self.compute(candidate, RequestOptions.from_mapping(options))
        return detached_summary(result, getattr(candidate, "candidate_id", None))

    def update_objects_with_score(
        self,
        candidate: Scorable,
        options: RequestOptions | Mapping[str, Any] | None = None,
    ) -> None:
        result = self.compute(candidate, RequestOptions.from_mapping(options))
        candidate.get_score_summary().add_result(self.name, result)

    def resolve_config(self, options: RequestOptions) -> Any:
        """Apply this card's per-request overrides on top of its defaults."""
        overrides = options.overrides_for(self.name)
        if not overrides:
            return self._config
        allowed = {item.name for item in fields(self._config)} - {"name"}
        unknown = sorted(set(overrides) - allowed)
        if unknown:
            raise ConfigurationError(
                f"Unknown overrides for {self.name}", [f"{key}: not adjustable" for key in unknown]
            )
        try:
            return replace(self._config, **dict(overrides))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid overrides for {self.name}", [str(exc)]) from exc

    @staticmethod
    def require(candidate: Scorable, field: str) -> Any:
        value = getattr(candidate, field, None)
        if value is None:
            raise InvalidInputError(
                f"candidate {getattr(candidate, 'candidate_id', '?')!r} is missing {field}",
                field=field,
            )
        return value

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if other is None or type(self) is not type(other):
            return False
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


__all__ = ["BaseScoreCard", "ScoreCard", "config_decimal", "config_int", "config_name"]
