from datetime import date

import pytest

from domain.account import RebalancingAccount
from domain.models import AllocationLeg
from domain.price_table import PriceRow


def _row(day: date, **prices: float) -> PriceRow:
    return PriceRow(date=day, prices=prices)


@pytest.fixture
def balanced_legs():
    return [
        AllocationLeg(ticker="AAA", weight_percent=50.0),
        AllocationLeg(ticker="BBB", weight_percent=50.0),
    ]


class TestOpenPositions:
    """Initial share purchase on the first in-range date."""

    def test_shares_use_fx_adjusted_price(self):
        legs = [
            AllocationLeg(ticker="AAA", weight_percent=60.0, fx_ticker="USDPLN"),
            AllocationLeg(ticker="BBB", weight_percent=40.0),
        ]
        account = RebalancingAccount(legs, 10000.0, "yearly")

        point = account.open_positions(_row(date(2020, 1, 31), AAA=100.0, BBB=50.0, USDPLN=4.0))

        # (10000 * 0.6) / (100 * 4.0) and (10000 * 0.4) / 50
        assert account.shares == pytest.approx([15.0, 80.0])
        assert point.value == pytest.approx(10000.0)
        assert point.drawdown_percent == 0.0

    def test_missing_fx_rate_falls_back_to_one(self):
        legs = [AllocationLeg(ticker="AAA", weight_percent=100.0, fx_ticker="USDPLN")]
        account = RebalancingAccount(legs, 1000.0, "monthly")

        account.open_positions(_row(date(2020, 1, 31), AAA=100.0))

        assert account.shares == pytest.approx([10.0])

    def test_missing_first_price_leaves_leg_empty(self, balanced_legs):
        account = RebalancingAccount(balanced_legs, 1000.0, "yearly")

        point = account.open_positions(_row(date(2020, 1, 31), AAA=10.0))

        assert account.shares == pytest.approx([50.0, 0.0])
        assert point.value == pytest.approx(500.0)
        # Running max starts at the starting capital
        assert point.drawdown_percent == pytest.approx(-50.0)

    def test_first_point_never_rebalances(self, balanced_legs):
        account = RebalancingAccount(balanced_legs, 1000.0, "monthly")
        account.open_positions(_row(date(2020, 1, 31), AAA=10.0, BBB=20.0))
        assert account.rebalance_dates == []


class TestMissingPrices:
    def test_missing_leg_contributes_zero_and_keeps_shares(self, balanced_legs):
        account = RebalancingAccount(balanced_legs, 1000.0, "monthly")
        account.open_positions(_row(date(2020, 1, 31), AAA=10.0, BBB=20.0))

        feb = account.apply_tick(_row(date(2020, 2, 28), AAA=12.0))
        assert feb.value == pytest.approx(600.0)
        assert feb.drawdown_percent == pytest.approx(-40.0)
        # Only the priced leg is reset: 600 * 0.5 / 12
        assert account.shares == pytest.approx([25.0, 25.0])
        assert account.rebalance_dates == [date(2020, 2, 28)]

        mar = account.apply_tick(_row(date(2020, 3, 31), AAA=12.0, BBB=20.0))
        assert mar.value == pytest.approx(25.0 * 12.0 + 25.0 * 20.0)
        assert mar.drawdown_percent == pytest.approx(-20.0)


@pytest.mark.parametrize(
    "test_case",
    [
        pytest.param(
            {
                "frequency": "monthly",
                "dates": [date(2020, 1, 31), date(2020, 2, 3), date(2020, 2, 27), date(2020, 3, 2)],
                "expected_rebalances": [date(2020, 2, 3), date(2020, 3, 2)],
            },
            id="monthly_rebalance",
        ),
        pytest.param(
            {
                "frequency": "quarterly",
                "dates": [date(2020, 1, 31), date(2020, 2, 28), date(2020, 4, 1), date(2020, 6, 30), date(2020, 7, 1)],
                "expected_rebalances": [date(2020, 4, 1), date(2020, 7, 1)],
            },
            id="quarterly_rebalance",
        ),
        pytest.param(
            {
                "frequency": "yearly",
                "dates": [date(2020, 1, 31), date(2020, 12, 31), date(2021, 1, 4), date(2021, 12, 31)],
                "expected_rebalances": [date(2021, 1, 4)],
            },
            id="yearly_rebalance",
        ),
    ],
)
def test_rebalancing_frequency(test_case, balanced_legs):
    account = RebalancingAccount(balanced_legs, 1000.0, test_case["frequency"])

    days = iter(test_case["dates"])
    account.open_positions(_row(next(days), AAA=10.0, BBB=20.0))
    for i, day in enumerate(days):
        account.apply_tick(_row(day, AAA=10.0 + i, BBB=20.0 - i))

    assert account.rebalance_dates == test_case["expected_rebalances"]


def test_rebalance_restores_target_weights(balanced_legs):
    account = RebalancingAccount(balanced_legs, 1000.0, "monthly")
    account.open_positions(_row(date(2020, 1, 31), AAA=10.0, BBB=20.0))

    point = account.apply_tick(_row(date(2020, 2, 28), AAA=20.0, BBB=20.0))

    # 50 * 20 + 25 * 20 = 1500, then split 750 / 750
    assert point.value == pytest.approx(1500.0)
    assert account.shares == pytest.approx([37.5, 37.5])
