from datetime import date
from typing import Optional

import pytest

from domain.models import EquityCurve, EquityPoint
from domain.price_table import PriceTable, PriceRow


def _month_end(start_year: int, start_month: int, offset: int) -> date:
    index = start_month - 1 + offset
    return date(start_year + index // 12, index % 12 + 1, 28)


@pytest.fixture
def monthly_table():
    """Builds a PriceTable with one row per month, dated the 28th."""
    def build(columns: dict[str, list[Optional[float]]], start_year: int = 2020,
              start_month: int = 1) -> PriceTable:
        length = max(len(values) for values in columns.values())
        rows = []
        for i in range(length):
            prices = {
                ticker: values[i]
                for ticker, values in columns.items()
                if i < len(values) and values[i] is not None
            }
            rows.append(PriceRow(date=_month_end(start_year, start_month, i), prices=prices))
        return PriceTable.from_rows(rows)
    return build


@pytest.fixture
def monthly_curve():
    """Builds an EquityCurve from monthly values with drawdowns filled in."""
    def build(values: list[float], start_year: int = 2020, start_month: int = 1) -> EquityCurve:
        running_max = values[0]
        points = []
        for i, value in enumerate(values):
            running_max = max(running_max, value)
            points.append(EquityPoint(
                date=_month_end(start_year, start_month, i),
                value=value,
                drawdown_percent=(value - running_max) / running_max * 100
            ))
        return EquityCurve(points=points)
    return build


@pytest.fixture
def month_end():
    return _month_end
