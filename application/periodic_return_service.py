from datetime import date
from typing import Mapping, Optional, Sequence

import pandas as pd

from domain.calculations import calculate_cagr_from_months, months_between, percent_change
from domain.constants import ATH_TOLERANCE_PERCENT, SMA_WINDOW_MONTHS, SNAPSHOT_MONTHS
from domain.models import (
    AssetDrawdown,
    AssetInfo,
    AssetPeriodReturn,
    AssetPriceRange,
    AssetYearReturn,
    EquityCurve,
    MonthlyPriceRow,
    MonthlyPriceSnapshot,
    PeriodicReturnRow,
)
from domain.price_table import PriceTable


class PeriodicReturnService:
    def monthly_returns(self, curve: EquityCurve) -> dict[int, PeriodicReturnRow]:
        """Year x month return grid built from each month's last value.

        A month is measured from the previous populated month's close, or the
        prior year's final close for the first month of a year. The very first
        month of the series is measured from the series' first value and is
        left empty when it holds a single observation.
        """
        if not curve.points:
            return {}

        closes: dict[int, list[Optional[float]]] = {}
        counts: dict[int, list[int]] = {}
        year_start: dict[int, float] = {}
        year_end: dict[int, float] = {}

        for point in curve.points:
            year, month = point.date.year, point.date.month - 1
            if year not in closes:
                closes[year] = [None] * 12
                counts[year] = [0] * 12
                year_start[year] = point.value
            closes[year][month] = point.value
            counts[year][month] += 1
            year_end[year] = point.value

        first_value = curve.points[0].value
        years = sorted(closes)
        result = {}

        for idx, year in enumerate(years):
            prior_year_end = year_end[years[idx - 1]] if idx > 0 else None
            previous_close = prior_year_end
            monthly: list[Optional[float]] = [None] * 12

            for month in range(12):
                close = closes[year][month]
                if close is None:
                    continue

                start = previous_close
                if start is None and counts[year][month] > 1:
                    start = first_value

                monthly[month] = percent_change(start, close)
                previous_close = close

            base = prior_year_end if prior_year_end is not None else year_start[year]
            result[year] = PeriodicReturnRow(
                year=year,
                monthly=monthly,
                full_year=percent_change(base, year_end[year])
            )

        return result

    def asset_annual_returns(self, price_table: PriceTable, ticker: str) -> dict[int, AssetYearReturn]:
        prices = price_table.valid_prices(ticker)
        if prices.empty:
            return {}

        year_closes = prices.groupby(prices.index.year).tail(1)
        by_year = {ts.year: (ts.date(), float(price)) for ts, price in year_closes.items()}

        result = {}
        for year in sorted(by_year):
            if year - 1 not in by_year:
                continue
            start_date, start_price = by_year[year - 1]
            end_date, end_price = by_year[year]
            result[year] = AssetYearReturn(
                year=year,
                return_percent=(end_price / start_price - 1) * 100,
                start_date=start_date,
                start_price=start_price,
                end_date=end_date,
                end_price=end_price
            )
        return result

    def period_return(self, price_table: PriceTable, ticker: str, years: int) -> Optional[AssetPeriodReturn]:
        prices = price_table.valid_prices(ticker)
        if prices.empty:
            return None

        end_ts = prices.index[-1]
        target = end_ts - pd.DateOffset(years=years)
        start_ts = prices.index[prices.index >= target][0]

        start_price = float(prices.loc[start_ts])
        end_price = float(prices.loc[end_ts])
        return AssetPeriodReturn(
            years=years,
            return_percent=(end_price / start_price - 1) * 100,
            start_date=start_ts.date(),
            start_price=start_price,
            end_date=end_ts.date(),
            end_price=end_price
        )

    def asset_price_range(self, price_table: PriceTable, ticker: str) -> Optional[AssetPriceRange]:
        prices = price_table.valid_prices(ticker)
        if prices.empty:
            return None

        first_ts, last_ts = prices.index[0], prices.index[-1]
        months = months_between(first_ts.date(), last_ts.date())
        return AssetPriceRange(
            first_date=first_ts.date(),
            first_price=float(prices.iloc[0]),
            last_date=last_ts.date(),
            last_price=float(prices.iloc[-1]),
            months=months,
            cagr_percent=calculate_cagr_from_months(float(prices.iloc[0]), float(prices.iloc[-1]), months)
        )

    def asset_current_drawdown(self, price_table: PriceTable, ticker: str) -> Optional[AssetDrawdown]:
        prices = price_table.valid_prices(ticker)
        if prices.empty:
            return None

        high_ts = prices.idxmax()
        high_price = float(prices.loc[high_ts])
        current_price = float(prices.iloc[-1])
        drawdown = (current_price - high_price) / high_price * 100

        return AssetDrawdown(
            drawdown_percent=drawdown,
            current_price=current_price,
            current_date=prices.index[-1].date(),
            high_price=high_price,
            high_date=high_ts.date(),
            is_at_high=abs(drawdown) < ATH_TOLERANCE_PERCENT
        )

    def monthly_price_snapshot(
        self,
        price_table: PriceTable,
        assets: Sequence[AssetInfo],
        end_date: Optional[date] = None,
        months: int = SNAPSHOT_MONTHS
    ) -> MonthlyPriceSnapshot:
        if price_table.empty:
            return MonthlyPriceSnapshot(months=[], assets=[])

        end_period = pd.Timestamp(end_date or price_table.dates[-1]).to_period("M")
        periods = [end_period - offset for offset in range(months - 1, -1, -1)]

        rows = []
        for asset in assets:
            closes = price_table.monthly_closes(asset.ticker)
            by_period = {ts.to_period("M"): float(p) for ts, p in closes.items()}
            prices = [by_period.get(period) for period in periods]

            window = prices[-SMA_WINDOW_MONTHS:]
            sma = None
            if len(window) == SMA_WINDOW_MONTHS and all(p is not None for p in window):
                sma = sum(window) / SMA_WINDOW_MONTHS

            signal = None
            if prices and prices[-1] is not None and sma is not None:
                signal = "BUY" if prices[-1] > sma else "SELL"

            rows.append(MonthlyPriceRow(
                ticker=asset.ticker,
                name=asset.name,
                prices=prices,
                sma=sma,
                signal=signal
            ))

        return MonthlyPriceSnapshot(months=[p.strftime("%b%y") for p in periods], assets=rows)

    @staticmethod
    def years_with_data(annual_returns: Mapping[str, Mapping[int, AssetYearReturn]]) -> list[int]:
        return sorted({year for by_year in annual_returns.values() for year in by_year})


def format_period(months: int) -> str:
    years, remaining = divmod(months, 12)
    if years == 0:
        return f"{remaining}m"
    if remaining == 0:
        return f"{years}y"
    return f"{years}y {remaining}m"
