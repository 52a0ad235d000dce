"""Price score card: cheaper listings score higher."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ...exceptions import InvalidInputError
from ..candidate import Scorable
from ..options import RequestOptions
from ..values import Indices, Result, ResultBuilder, ScoreValue, Statistics, to_decimal
from .base import BaseScoreCard, config_decimal, config_name


@dataclass(frozen=True)
class PriceScoreCardConfig:
    """Price ceiling and bucket width for price scoring."""

    name: str = "PriceScoreCard"
    ceiling: Decimal = Decimal("1000")
    bucket_size: Decimal = Decimal("100")

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", config_name(self.name))
        object.__setattr__(
            self, "ceiling", config_decimal(self.ceiling, "ceiling", minimum=Decimal(0))
        )
        object.__setattr__(
            self,
            "bucket_size",
            config_decimal(self.bucket_size, "bucket_size", minimum=Decimal(0), strict=True),
        )


class PriceScoreCard(BaseScoreCard):
    """Score = ceiling - price, floored at zero.

    Position is ``(price bucket, 1 if above the ceiling else 0)``.
    """

    def __init__(self, *, config: PriceScoreCardConfig | None = None) -> None:
        super().__init__(config or PriceScoreCardConfig())

    def compute(self, candidate: Scorable, options: RequestOptions) -> Result:
        config = self.resolve_config(options)
        price = to_decimal(self.require(candidate, "price"), field="price")
        if price < 0:
            raise InvalidInputError(f"price must be non-negative, got {price}", field="price")

        ceiling = config.ceiling
        bucket_size = config.bucket_size

        score = ScoreValue(max(ceiling - price, Decimal(0)))
        bucket = int(price // bucket_size)
        above_ceiling = 1 if price > ceiling else 0

        return (
            ResultBuilder(config.name, score)
            .set_position(Indices(bucket, above_ceiling))
            .set_statistics(Statistics.from_samples([price]))
            .build()
        )
