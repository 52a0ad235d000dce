"""Shipping-based example score card."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ...exceptions import InvalidInputError
from ..candidate import Scorable
from ..options import RequestOptions
from ..values import Indices, Result, ResultBuilder, ScoreValue, StatisticsBuilder, to_decimal
from .base import BaseScoreCard, config_decimal, config_int, config_name


@dataclass(frozen=True)
class ExampleScoreCardConfig:
    """Adjustments making this card heavier or lighter than its peers."""

    name: str = "SolutionPriceScoreCard"
    score_adjustment: int = 5
    position_adjustment: int = 3
    average_adjustment: Decimal = Decimal("2")
    standard_deviation_adjustment: Decimal = Decimal("1.0")

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", config_name(self.name))
        config_int(self.score_adjustment, "score_adjustment")
        config_int(self.position_adjustment, "position_adjustment", minimum=0)
        object.__setattr__(
            self, "average_adjustment", config_decimal(self.average_adjustment, "average_adjustment")
        )
        object.__setattr__(
            self,
            "standard_deviation_adjustment",
            config_decimal(
                self.standard_deviation_adjustment,
                "standard_deviation_adjustment",
                minimum=Decimal(0),
            ),
        )


class ExampleScoreCard(BaseScoreCard):
    """Score a listing from its shipping time and shipping cost.

    score = average shipping time + score adjustment; the average statistic
    is the shipping cost shifted by the average adjustment.
    """

    def __init__(self, *, config: ExampleScoreCardConfig | None = None) -> None:
        super().__init__(config or ExampleScoreCardConfig())

    def compute(self, candidate: Scorable, options: RequestOptions) -> Result:
        config = self.resolve_config(options)

        shipping_time = to_decimal(
            self.require(candidate, "average_shipping_time"), field="average_shipping_time"
        )
        shipping_cost = to_decimal(self.require(candidate, "shipping_cost"), field="shipping_cost")
        if shipping_time < 0:
            raise InvalidInputError(
                f"average_shipping_time must be non-negative, got {shipping_time}",
                field="average_shipping_time",
            )
        if shipping_cost < 0:
            raise InvalidInputError(
                f"shipping_cost must be non-negative, got {shipping_cost}",
                field="shipping_cost",
            )

        score = ScoreValue(shipping_time) + config.score_adjustment
        statistics = (
            StatisticsBuilder()
            .set_average(shipping_cost + config.average_adjustment)
            .set_standard_deviation(config.standard_deviation_adjustment)
            .build()
        )
        return (
            ResultBuilder(config.name, score)
            .set_position(Indices(config.position_adjustment))
            .set_statistics(statistics)
            .build()
        )
