from __future__ import annotations

from decimal import Decimal

import pytest

from prank.core import ExampleObject, Indices, PriceScoreCard, PriceScoreCardConfig, ScoreValue
from prank.exceptions import ConfigurationError, InvalidInputError


def test_price_card_scores_cheaper_higher():
    card = PriceScoreCard()
    candidate = ExampleObject(candidate_id="C-1", price=Decimal("250.00"))

    result = card.score(candidate).get_result("PriceScoreCard")

    assert result.score == ScoreValue("750.00")
    assert result.position == Indices(2, 0)
    assert result.statistics.average == Decimal("250.00")
    assert result.statistics.standard_deviation == Decimal(0)
    assert result.statistics.minimum == result.statistics.maximum == Decimal("250.00")
    assert result.statistics.sample_count == 1


def test_price_above_ceiling_floors_score_and_flags_position():
    card = PriceScoreCard(config=PriceScoreCardConfig(ceiling=Decimal("500"), bucket_size=Decimal("250")))

    result = card.score(ExampleObject(candidate_id="C-2", price=Decimal("900"))).get_result(card.name)

    assert result.score == ScoreValue(0)
    assert result.position == Indices(3, 1)


def test_price_card_requires_price():
    with pytest.raises(InvalidInputError):
        PriceScoreCard().score(ExampleObject(candidate_id="C-3"))


def test_price_card_rejects_bad_bucket_override():
    card = PriceScoreCard()

    with pytest.raises(ConfigurationError):
        card.score_with(
            ExampleObject(candidate_id="C-4", price=Decimal("10")),
            {"overrides": {card.name: {"bucket_size": 0}}},
        )


@pytest.mark.parametrize("kwargs", [{"ceiling": "lots"}, {"ceiling": -1}, {"bucket_size": None}, {"name": 7}])
def test_price_config_rejects_invalid_values(kwargs):
    with pytest.raises(ConfigurationError):
        PriceScoreCardConfig(**kwargs)
