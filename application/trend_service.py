import logging
from datetime import date
from typing import Optional

import pandas as pd

from application.statistics_service import StatisticsService
from domain.calculations import drawdown_percent
from domain.constants import SMA_WINDOW_MONTHS
from domain.models import EquityCurve, EquityPoint, TrendParameters, TrendPoint, TrendResult
from domain.price_table import PriceTable
from domain.trend_account import TrendFollowingAccount, round_trip_outcomes

logger = logging.getLogger(__name__)


class TrendFollowingService:
    def __init__(self, statistics: Optional[StatisticsService] = None):
        self.statistics = statistics or StatisticsService()

    def simulate(
        self,
        ticker: str,
        price_table: PriceTable,
        start_date: date,
        end_date: date,
        annual_risk_free_rate: float,
        commission_rate: float
    ) -> Optional[TrendResult]:
        params = TrendParameters(
            ticker=ticker,
            start_date=start_date,
            end_date=end_date,
            annual_risk_free_rate=annual_risk_free_rate,
            commission_rate=commission_rate
        )

        closes = price_table.between(params.start_date, params.end_date).monthly_closes(params.ticker)
        if len(closes) < SMA_WINDOW_MONTHS:
            logger.warning(
                f"Trend analysis skipped for {params.ticker}: "
                f"{len(closes)} monthly closes, need {SMA_WINDOW_MONTHS}"
            )
            return None

        sma = closes.rolling(window=SMA_WINDOW_MONTHS).mean()

        account = TrendFollowingAccount(params.annual_risk_free_rate, params.commission_rate)
        points = [
            account.apply_month(timestamp.date(), float(price), float(average))
            for timestamp, price, average in zip(closes.index, closes, sma)
            if pd.notna(average)
        ]

        benchmark_curve = self._curve(points, "benchmark_value")
        strategy_curve = self._curve(points, "strategy_value")

        outcomes = round_trip_outcomes(account.events)
        successes = sum(outcomes)

        logger.info(
            f"Trend simulation for {params.ticker}: {len(points)} months, "
            f"{len(account.events) - 1} signal changes, strategy {account.strategy:.4f} "
            f"vs benchmark {account.benchmark:.4f}"
        )

        return TrendResult(
            ticker=params.ticker,
            points=points,
            events=account.events,
            benchmark_curve=benchmark_curve,
            strategy_curve=strategy_curve,
            benchmark_statistics=self.statistics.compute_excess_return_stats(
                benchmark_curve, params.annual_risk_free_rate
            ),
            strategy_statistics=self.statistics.compute_excess_return_stats(
                strategy_curve, params.annual_risk_free_rate
            ),
            trade_count=len(account.events) - 1,
            round_trips=len(outcomes),
            successful_round_trips=successes,
            success_rate=successes / len(outcomes) if outcomes else None
        )

    @staticmethod
    def _curve(points: list[TrendPoint], field: str) -> EquityCurve:
        running_max = 1.0
        curve_points = []
        for point in points:
            value = getattr(point, field)
            running_max = max(running_max, value)
            curve_points.append(EquityPoint(
                date=point.date,
                value=value,
                drawdown_percent=drawdown_percent(value, running_max)
            ))
        return EquityCurve(points=curve_points)
