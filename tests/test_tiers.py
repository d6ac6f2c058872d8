# tests/test_tiers.py

import pytest

from app.services.loyalty import next_tier, tier_for


@pytest.mark.parametrize(
    "total_points, expected_tier",
    [
        (0, "bronze"),
        (499, "bronze"),
        (500, "silver"),
        (1999, "silver"),
        (2000, "gold"),
        (4999, "gold"),
        (5000, "platinum"),
        (120000, "platinum"),
    ],
)
def test_tier_boundaries(total_points, expected_tier):
    assert tier_for(total_points) == expected_tier


@pytest.mark.parametrize(
    "total_points, expected",
    [
        (0, ("silver", 500)),
        (480, ("silver", 20)),
        (500, ("gold", 1500)),
        (4999, ("platinum", 1)),
        (5000, (None, None)),
    ],
)
def test_next_tier(total_points, expected):
    assert next_tier(total_points) == expected
