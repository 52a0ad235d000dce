"""Immutable value types produced by score cards."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Context, Decimal, InvalidOperation
from functools import total_ordering
from typing import Any, Iterable, Union

from ..exceptions import InvalidInputError

# Wide enough that sums and weighted sums of realistic scores never round.
_CONTEXT = Context(prec=60)

Number = Union["ScoreValue", Decimal, int, float, str]


def to_decimal(value: Any, *, field: str = "value") -> Decimal:
    """Convert ``value`` to a finite ``Decimal`` without binary float drift.

    Floats go through their shortest ``repr`` so ``22.0`` becomes
    ``Decimal("22.0")`` rather than its binary expansion.
    """
    if isinstance(value, ScoreValue):
        return value.value
    if value is None or isinstance(value, bool):
        raise InvalidInputError(f"{field} must be numeric, got {value!r}", field=field)
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as exc:
            raise InvalidInputError(
                f"{field} is not a decimal literal: {value!r}", field=field
            ) from exc
    else:
        raise InvalidInputError(
            f"{field} must be numeric, got {type(value).__name__}", field=field
        )
    if not result.is_finite():
        raise InvalidInputError(f"{field} must be finite, got {value!r}", field=field)
    return result


@total_ordering
class ScoreValue:
    """Exact decimal score.

    Arithmetic never leaves ``Decimal`` so repeated aggregation of the same
    inputs is reproducible digit for digit.
    """

    __slots__ = ("_value",)

    def __init__(self, value: Number = 0) -> None:
        object.__setattr__(self, "_value", to_decimal(value, field="score"))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("ScoreValue is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("ScoreValue is immutable")

    @classmethod
    def zero(cls) -> "ScoreValue":
        return cls(0)

    @classmethod
    def sum(cls, values: Iterable[Number]) -> "ScoreValue":
        total = Decimal(0)
        for value in values:
            total = _CONTEXT.add(total, to_decimal(value))
        return cls(total)

    @property
    def value(self) -> Decimal:
        return self._value

    def __add__(self, other: Any) -> "ScoreValue":
        if not _is_number(other):
            return NotImplemented
        return ScoreValue(_CONTEXT.add(self._value, to_decimal(other)))

    __radd__ = __add__

    def __sub__(self, other: Any) -> "ScoreValue":
        if not _is_number(other):
            return NotImplemented
        return ScoreValue(_CONTEXT.subtract(self._value, to_decimal(other)))

    def __rsub__(self, other: Any) -> "ScoreValue":
        if not _is_number(other):
            return NotImplemented
        return ScoreValue(_CONTEXT.subtract(to_decimal(other), self._value))

    def __mul__(self, weight: Any) -> "ScoreValue":
        if not _is_number(weight):
            return NotImplemented
        return ScoreValue(_CONTEXT.multiply(self._value, to_decimal(weight, field="weight")))

    __rmul__ = __mul__

    def __neg__(self) -> "ScoreValue":
        return ScoreValue(-self._value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ScoreValue):
            return self._value == other._value
        if isinstance(other, (Decimal, int)) and not isinstance(other, bool):
            return self._value == other
        return NotImplemented

    def __lt__(self, other: Any) -> bool:
        if not _is_number(other):
            return NotImplemented
        return self._value < to_decimal(other)

    def __hash__(self) -> int:
        return hash(self._value)

    def __float__(self) -> float:
        return float(self._value)

    def __str__(self) -> str:
        return str(self._value)

    def __repr__(self) -> str:
        return f"ScoreValue('{self._value}')"


def _is_number(value: Any) -> bool:
    return isinstance(value, (ScoreValue, Decimal, int, float)) and not isinstance(value, bool)


class Indices:
    """Position of a candidate within one or more orderings.

    The first entry is the primary rank. Further entries are strategy
    defined (bucket, rank within bucket, ...) and carry no ordering rule.
    """

    __slots__ = ("_values",)

    def __init__(self, *values: int) -> None:
        if not values:
            raise InvalidInputError("Indices requires at least one position", field="position")
        for value in values:
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidInputError(
                    f"position must be an int, got {value!r}", field="position"
                )
            if value < 0:
                raise InvalidInputError(
                    f"position must be non-negative, got {value}", field="position"
                )
        object.__setattr__(self, "_values", tuple(values))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Indices is immutable")

    @classmethod
    def from_iterable(cls, values: Iterable[int]) -> "Indices":
        return cls(*values)

    @property
    def original(self) -> int:
        return self._values[0]

    @property
    def values(self) -> tuple[int, ...]:
        return self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self):
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Indices):
            return NotImplemented
        return self._values == other._values

    def __hash__(self) -> int:
        return hash(self._values)

    def __repr__(self) -> str:
        return f"Indices{self._values!r}" if len(self._values) > 1 else f"Indices({self.original})"


@dataclass(frozen=True, slots=True)
class Statistics:
    """Descriptive aggregates recorded alongside a score."""

    average: Decimal = Decimal(0)
    standard_deviation: Decimal = Decimal(0)
    minimum: Decimal | None = None
    maximum: Decimal | None = None
    sample_count: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "average", to_decimal(self.average, field="average"))
        deviation = to_decimal(self.standard_deviation, field="standard_deviation")
        if deviation < 0:
            raise InvalidInputError(
                f"standard_deviation must be >= 0, got {deviation}",
                field="standard_deviation",
            )
        object.__setattr__(self, "standard_deviation", deviation)
        if self.minimum is not None:
            object.__setattr__(self, "minimum", to_decimal(self.minimum, field="minimum"))
        if self.maximum is not None:
            object.__setattr__(self, "maximum", to_decimal(self.maximum, field="maximum"))
        if (
            self.minimum is not None
            and self.maximum is not None
            and self.minimum > self.maximum
        ):
            raise InvalidInputError("minimum must not exceed maximum", field="minimum")
        if self.sample_count is not None and (
            isinstance(self.sample_count, bool)
            or not isinstance(self.sample_count, int)
            or self.sample_count < 0
        ):
            raise InvalidInputError(
                f"sample_count must be a non-negative int, got {self.sample_count!r}",
                field="sample_count",
            )

    @classmethod
    def from_samples(cls, samples: Iterable[Number]) -> "Statistics":
        return StatisticsBuilder().add_samples(samples).build()

    def to_dict(self) -> dict[str, Any]:
        return {
            "average": str(self.average),
            "standard_deviation": str(self.standard_deviation),
            "minimum": None if self.minimum is None else str(self.minimum),
            "maximum": None if self.maximum is None else str(self.maximum),
            "sample_count": self.sample_count,
        }


class StatisticsBuilder:
    """Accumulates statistics inputs before freezing them.

    Explicitly set fields win; anything left unset is derived from the
    accumulated samples (population standard deviation).
    """

    def __init__(self) -> None:
        self._average: Decimal | None = None
        self._standard_deviation: Decimal | None = None
        self._minimum: Decimal | None = None
        self._maximum: Decimal | None = None
        self._sample_count: int | None = None
        self._samples: list[Decimal] = []

    def set_average(self, value: Number) -> "StatisticsBuilder":
        self._average = to_decimal(value, field="average")
        return self

    def set_standard_deviation(self, value: Number) -> "StatisticsBuilder":
        self._standard_deviation = to_decimal(value, field="standard_deviation")
        return self

    def set_minimum(self, value: Number) -> "StatisticsBuilder":
        self._minimum = to_decimal(value, field="minimum")
        return self

    def set_maximum(self, value: Number) -> "StatisticsBuilder":
        self._maximum = to_decimal(value, field="maximum")
        return self

    def set_sample_count(self, count: int) -> "StatisticsBuilder":
        self._sample_count = count
        return self

    def add_sample(self, value: Number) -> "StatisticsBuilder":
        self._samples.append(to_decimal(value, field="sample"))
        return self

    def add_samples(self, values: Iterable[Number]) -> "StatisticsBuilder":
        for value in values:
            self.add_sample(value)
        return self

    def build(self) -> Statistics:
        samples = tuple(self._samples)
        mean = _mean(samples) if samples else Decimal(0)

        average = self._average if self._average is not None else mean
        if self._standard_deviation is not None:
            deviation = self._standard_deviation
        elif samples:
            deviation = _population_deviation(samples, mean)
        else:
            deviation = Decimal(0)

        minimum = self._minimum if self._minimum is not None else (min(samples) if samples else None)
        maximum = self._maximum if self._maximum is not None else (max(samples) if samples else None)
        if self._sample_count is not None:
            count = self._sample_count
        else:
            count = len(samples) if samples else None

        return Statistics(
            average=average,
            standard_deviation=deviation,
            minimum=minimum,
            maximum=maximum,
            sample_count=count,
        )


def _mean(samples: tuple[Decimal, ...]) -> Decimal:
    total = Decimal(0)
    for sample in samples:
        total = _CONTEXT.add(total, sample)
    return _CONTEXT.divide(total, Decimal(len(samples)))


def _population_deviation(samples: tuple[Decimal, ...], mean: Decimal) -> Decimal:
    squares = Decimal(0)
    for sample in samples:
        delta = _CONTEXT.subtract(sample, mean)
        squares = _CONTEXT.add(squares, _CONTEXT.multiply(delta, delta))
    variance = _CONTEXT.divide(squares, Decimal(len(samples)))
    if variance == 0:
        return Decimal(0)
    return _CONTEXT.sqrt(variance)


@dataclass(frozen=True, slots=True)
class Result:
    """Output of one score card for one candidate."""

    score_card_name: str
    score: ScoreValue
    position: Indices
    statistics: Statistics

    def __post_init__(self) -> None:
        if not isinstance(self.score_card_name, str) or not self.score_card_name.strip():
            raise InvalidInputError("score_card_name must be a non-empty string", field="score_card_name")
        if not isinstance(self.score, ScoreValue):
            object.__setattr__(self, "score", ScoreValue(self.score))
        if not isinstance(self.position, Indices):
            raise InvalidInputError("position must be Indices", field="position")
        if not isinstance(self.statistics, Statistics):
            raise InvalidInputError("statistics must be Statistics", field="statistics")

    def to_dict(self) -> dict[str, Any]:
        return {
            "score_card_name": self.score_card_name,
            "score": str(self.score),
            "position": list(self.position.values),
            "statistics": self.statistics.to_dict(),
        }


class ResultBuilder:
    """Collects the parts of a Result; only ``build()`` output leaves the card."""

    def __init__(self, score_card_name: str, score: Number) -> None:
        self._name = score_card_name
        self._score = score if isinstance(score, ScoreValue) else ScoreValue(score)
        self._position: Indices | None = None
        self._statistics: Statistics | None = None

    def set_position(self, position: Indices | int) -> "ResultBuilder":
        self._position = position if isinstance(position, Indices) else Indices(position)
        return self

    def set_statistics(self, statistics: Statistics) -> "ResultBuilder":
        self._statistics = statistics
        return self

    def build(self) -> Result:
        return Result(
            score_card_name=self._name,
            score=self._score,
            position=self._position if self._position is not None else Indices(0),
            statistics=self._statistics if self._statistics is not None else Statistics(),
        )


__all__ = [
    "Indices",
    "Result",
    "ResultBuilder",
    "ScoreValue",
    "Statistics",
    "StatisticsBuilder",
    "to_decimal",
]
