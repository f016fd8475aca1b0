from datetime import date
from typing import Optional, Sequence

from domain.calculations import calculate_target_shares, drawdown_percent, months_between
from domain.constants import REBALANCE_INTERVAL_MONTHS
from domain.models import AllocationLeg, EquityPoint
from domain.price_table import PriceRow, fx_adjusted_price


class RebalancingAccount:
    def __init__(self, legs: Sequence[AllocationLeg], capital: float, rebalance_frequency: str):
        self.legs = list(legs)
        self.initial_capital = capital
        self.rebalance_interval = REBALANCE_INTERVAL_MONTHS[rebalance_frequency]
        self.shares = [0.0] * len(self.legs)
        self.value = 0.0
        self.running_max = capital
        self.last_rebalance_date: Optional[date] = None
        self.rebalance_dates: list[date] = []

    def open_positions(self, row: PriceRow) -> EquityPoint:
        for i, leg in enumerate(self.legs):
            adjusted_price = fx_adjusted_price(row, leg.ticker, leg.fx_ticker)
            self.shares[i] = calculate_target_shares(
                self.initial_capital,
                leg.weight_percent,
                adjusted_price
            )
        self.last_rebalance_date = row.date
        return self._mark(row)

    def apply_tick(self, row: PriceRow) -> EquityPoint:
        point = self._mark(row)

        if self._should_rebalance(row.date) and self.value > 0:
            self._rebalance(row)

        return point

    def _mark(self, row: PriceRow) -> EquityPoint:
        self.value = sum(
            shares * price
            for shares, price in zip(self.shares, self._adjusted_prices(row))
            if price is not None
        )

        if self.value > self.running_max:
            self.running_max = self.value

        return EquityPoint(
            date=row.date,
            value=self.value,
            drawdown_percent=drawdown_percent(self.value, self.running_max)
        )

    def _should_rebalance(self, current_date: date) -> bool:
        if self.last_rebalance_date is None:
            return False
        return months_between(self.last_rebalance_date, current_date) >= self.rebalance_interval

    def _rebalance(self, row: PriceRow) -> None:
        for i, (leg, price) in enumerate(zip(self.legs, self._adjusted_prices(row))):
            if price is not None:
                self.shares[i] = calculate_target_shares(self.value, leg.weight_percent, price)
        self.last_rebalance_date = row.date
        self.rebalance_dates.append(row.date)

    def _adjusted_prices(self, row: PriceRow) -> list[Optional[float]]:
        return [fx_adjusted_price(row, leg.ticker, leg.fx_ticker) for leg in self.legs]
