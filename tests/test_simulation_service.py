import logging
from datetime import date

import pytest

from application.simulation_service import PortfolioSimulationService
from domain.models import AllocationLeg, EquityCurve, InvalidPortfolio, SimulationParameters
from domain.price_table import PriceRow, PriceTable


@pytest.fixture
def service():
    return PortfolioSimulationService()


@pytest.fixture
def fx_table():
    rows = [
        PriceRow(date=date(2020, 1, 31), prices={"AAA": 100.0, "BBB": 50.0, "USDPLN": 4.0}),
        PriceRow(date=date(2020, 6, 30), prices={"AAA": 110.0, "BBB": 50.0, "USDPLN": 4.0}),
        PriceRow(date=date(2021, 1, 29), prices={"AAA": 120.0, "BBB": 70.0, "USDPLN": 4.0}),
        PriceRow(date=date(2021, 2, 26), prices={"AAA": 125.0, "BBB": 70.0, "USDPLN": 4.0}),
    ]
    return PriceTable.from_rows(rows)


def _params(start: date, end: date, frequency: str = "yearly", capital: float = 10000.0):
    return SimulationParameters(
        starting_capital=capital,
        rebalance_frequency=frequency,
        start_date=start,
        end_date=end
    )


class TestValidation:
    """Portfolios that cannot be simulated come back as InvalidPortfolio."""

    @pytest.mark.parametrize(
        "test_case",
        [
            pytest.param(
                {"legs": [], "reason": "no assets"},
                id="empty_allocation",
            ),
            pytest.param(
                {
                    "legs": [
                        AllocationLeg(ticker="AAA", weight_percent=60.0),
                        AllocationLeg(ticker="BBB", weight_percent=39.0),
                    ],
                    "reason": "weights do not sum to 100%",
                },
                id="weights_sum_to_99",
            ),
            pytest.param(
                {
                    "legs": [
                        AllocationLeg(ticker="AAA", weight_percent=60.0),
                        AllocationLeg(ticker="BBB", weight_percent=40.02),
                    ],
                    "reason": "weights do not sum to 100%",
                },
                id="weights_outside_tolerance",
            ),
            pytest.param(
                {
                    "legs": [
                        AllocationLeg(ticker="AAA", weight_percent=150.0),
                        AllocationLeg(ticker="BBB", weight_percent=0.0),
                    ],
                    "reason": "weights do not sum to 100%",
                },
                id="single_leg_above_100",
            ),
        ],
    )
    def test_invalid_allocation(self, service, fx_table, test_case):
        result = service.simulate(
            test_case["legs"],
            fx_table,
            _params(date(2020, 1, 31), date(2021, 2, 26))
        )
        assert isinstance(result, InvalidPortfolio)
        assert test_case["reason"] in result.reason

    def test_weights_within_tolerance_are_accepted(self, service, fx_table):
        legs = [
            AllocationLeg(ticker="AAA", weight_percent=60.0),
            AllocationLeg(ticker="BBB", weight_percent=40.005),
        ]
        result = service.simulate(legs, fx_table, _params(date(2020, 1, 31), date(2021, 2, 26)))
        assert isinstance(result, EquityCurve)

    def test_dates_missing_from_table(self, service, fx_table):
        legs = [AllocationLeg(ticker="AAA", weight_percent=100.0)]
        result = service.simulate(legs, fx_table, _params(date(2020, 1, 1), date(2021, 2, 26)))
        assert isinstance(result, InvalidPortfolio)
        assert "start date" in result.reason

    def test_single_row_range(self, service, fx_table):
        legs = [AllocationLeg(ticker="AAA", weight_percent=100.0)]
        result = service.simulate(legs, fx_table, _params(date(2020, 6, 30), date(2020, 6, 30)))
        assert isinstance(result, InvalidPortfolio)
        assert "fewer than 2" in result.reason

    def test_invalid_portfolio_is_logged(self, service, fx_table, caplog):
        with caplog.at_level(logging.WARNING):
            service.simulate([], fx_table, _params(date(2020, 1, 31), date(2021, 2, 26)))
        assert "Portfolio not simulated" in caplog.text


class TestSixtyFortyWithFx:
    """Two-leg 60/40 portfolio, 10000 capital, yearly rebalance, fixed FX of 4.0."""

    @pytest.fixture
    def curve(self, service, fx_table):
        legs = [
            AllocationLeg(ticker="AAA", weight_percent=60.0, fx_ticker="USDPLN"),
            AllocationLeg(ticker="BBB", weight_percent=40.0),
        ]
        return service.simulate(legs, fx_table, _params(date(2020, 1, 31), date(2021, 2, 26)))

    def test_one_point_per_date(self, curve, fx_table):
        assert curve.dates == fx_table.dates

    def test_values(self, curve):
        # Initial shares: AAA 6000 / 400 = 15, BBB 4000 / 50 = 80
        # Jan 2021 rebalance at 12800: AAA 7680 / 480 = 16, BBB 5120 / 70
        assert curve.values == pytest.approx([
            10000.0,
            15 * 440.0 + 80 * 50.0,
            15 * 480.0 + 80 * 70.0,
            16 * 500.0 + (5120.0 / 70.0) * 70.0,
        ])

    def test_rebalances_after_twelve_months(self, curve):
        assert curve.rebalance_dates == [date(2021, 1, 29)]

    def test_rising_curve_has_no_drawdown(self, curve):
        assert all(p.drawdown_percent == 0.0 for p in curve.points)


def test_single_leg_tracks_normalized_price(service, monthly_table, month_end):
    prices = [100.0, 110.0, 99.0, 120.0, 130.0, 90.0, 95.0, 140.0]
    table = monthly_table({"AAA": prices})
    legs = [AllocationLeg(ticker="AAA", weight_percent=100.0)]

    curve = service.simulate(legs, table, _params(month_end(2020, 1, 0), month_end(2020, 1, 7), "monthly"))

    normalized = [v / curve.values[0] for v in curve.values]
    assert normalized == pytest.approx([p / prices[0] for p in prices])


def test_drawdown_is_zero_at_new_highs_and_negative_otherwise(service, monthly_table, month_end):
    table = monthly_table({
        "AAA": [100.0, 120.0, 90.0, 130.0, 125.0, 140.0],
        "BBB": [50.0, 45.0, 55.0, 60.0, 40.0, 65.0],
    })
    legs = [
        AllocationLeg(ticker="AAA", weight_percent=70.0),
        AllocationLeg(ticker="BBB", weight_percent=30.0),
    ]

    curve = service.simulate(legs, table, _params(month_end(2020, 1, 0), month_end(2020, 1, 5), "quarterly"))

    running_max = 10000.0
    for point in curve.points:
        assert point.drawdown_percent <= 0
        if point.value >= running_max:
            assert point.drawdown_percent == 0.0
        running_max = max(running_max, point.value)


def test_date_range_filters_rows(service, monthly_table, month_end):
    table = monthly_table({"AAA": [100.0, 110.0, 120.0, 130.0, 140.0]})
    legs = [AllocationLeg(ticker="AAA", weight_percent=100.0)]

    curve = service.simulate(legs, table, _params(month_end(2020, 1, 1), month_end(2020, 1, 3), capital=1100.0))

    assert curve.dates == [month_end(2020, 1, i) for i in (1, 2, 3)]
    assert curve.values == pytest.approx([1100.0, 1200.0, 1300.0])
