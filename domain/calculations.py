import math
from datetime import date
from typing import Optional, Sequence

import numpy as np

from domain.constants import DAYS_PER_YEAR, MONTHS_PER_YEAR, PERIODS_PER_YEAR


def months_between(earlier: date, later: date) -> int:
    return (later.year - earlier.year) * 12 + (later.month - earlier.month)


def calculate_target_shares(value: float, weight_percent: float, adjusted_price: Optional[float]) -> float:
    if adjusted_price is None or adjusted_price <= 0:
        return 0.0
    return (value * weight_percent / 100.0) / adjusted_price


def drawdown_percent(value: float, running_max: float) -> float:
    if running_max <= 0:
        return 0.0
    return min(0.0, (value - running_max) / running_max * 100.0)


def percent_change(start: Optional[float], end: Optional[float]) -> Optional[float]:
    if start is None or end is None or start <= 0:
        return None
    return (end - start) / start * 100.0


def year_fraction(start: date, end: date) -> float:
    return (end - start).days / DAYS_PER_YEAR


def calculate_cagr(start_value: float, end_value: float, years: float) -> float:
    if years <= 0 or start_value <= 0:
        return 0.0
    return (math.pow(end_value / start_value, 1.0 / years) - 1.0) * 100.0


def calculate_cagr_from_months(start_value: float, end_value: float, months: int) -> float:
    if start_value <= 0 or months <= 0:
        return 0.0
    return calculate_cagr(start_value, end_value, months / MONTHS_PER_YEAR)


def periodic_returns(values: Sequence[float]) -> list[float]:
    return [
        (current - previous) / previous
        for previous, current in zip(values[:-1], values[1:])
        if previous > 0
    ]


def annualized_volatility(returns: Sequence[float]) -> float:
    if len(returns) == 0:
        return 0.0
    # Population standard deviation (ddof=0)
    return float(np.std(returns)) * math.sqrt(PERIODS_PER_YEAR) * 100.0


def monthly_rate_from_annual(annual_rate: float) -> float:
    return math.pow(1.0 + annual_rate, 1.0 / MONTHS_PER_YEAR) - 1.0


def inflation_adjusted_rate(annual_rate_percent: float, annual_inflation_percent: float,
                            year_index: int) -> float:
    return annual_rate_percent * math.pow(1.0 + annual_inflation_percent / 100.0, year_index)


def combine_returns(asset_return_percent: float, fx_return_percent: float) -> float:
    return ((1.0 + asset_return_percent / 100.0) * (1.0 + fx_return_percent / 100.0) - 1.0) * 100.0
