from datetime import date
from typing import Optional

from domain.calculations import monthly_rate_from_annual
from domain.models import SignalChangeEvent, TrendPoint, TrendSignalState


def signal_for(price: float, sma: float) -> TrendSignalState:
    return TrendSignalState.INVESTED if price > sma else TrendSignalState.OUT_OF_MARKET


class TrendFollowingAccount:
    """Monthly benchmark and SMA-switching strategy, both starting at 1.0.

    The state decided at a month's close earns the following month's return.
    A flip pays the commission before its event is logged.
    """

    def __init__(self, annual_risk_free_rate: float, commission_rate: float):
        self.monthly_cash_return = monthly_rate_from_annual(annual_risk_free_rate)
        self.commission_rate = commission_rate
        self.benchmark = 1.0
        self.strategy = 1.0
        self.held: Optional[TrendSignalState] = None
        self.previous_price: Optional[float] = None
        self.events: list[SignalChangeEvent] = []

    def apply_month(self, current_date: date, price: float, sma: float) -> TrendPoint:
        signal = signal_for(price, sma)

        if self.held is None:
            self.held = signal
            self._record_event(current_date, signal, price)
        else:
            asset_return = price / self.previous_price - 1.0
            self.benchmark *= 1.0 + asset_return
            if self.held == TrendSignalState.INVESTED:
                self.strategy *= 1.0 + asset_return
            else:
                self.strategy *= 1.0 + self.monthly_cash_return

            if signal != self.held:
                self.strategy *= 1.0 - self.commission_rate
                self._record_event(current_date, signal, price)
                self.held = signal

        self.previous_price = price
        return TrendPoint(
            date=current_date,
            price=price,
            sma=sma,
            signal=signal,
            benchmark_value=self.benchmark,
            strategy_value=self.strategy
        )

    def _record_event(self, current_date: date, state: TrendSignalState, price: float) -> None:
        self.events.append(
            SignalChangeEvent(
                date=current_date,
                new_state=state,
                price_at_change=price,
                benchmark_value_at_change=self.benchmark,
                strategy_value_at_change=self.strategy
            )
        )


def round_trip_outcomes(events: list[SignalChangeEvent]) -> list[bool]:
    outcomes = []
    exit_price: Optional[float] = None
    for event in events:
        if event.new_state == TrendSignalState.OUT_OF_MARKET:
            exit_price = event.price_at_change
        elif exit_price is not None:
            outcomes.append(event.price_at_change < exit_price)
            exit_price = None
    return outcomes
