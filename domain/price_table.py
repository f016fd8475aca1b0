from datetime import date
from typing import Iterator, Mapping, Optional, Sequence

import numpy as np
import pandas as pd
from pydantic import BaseModel, Field


class PriceRow(BaseModel):
    date: date
    prices: dict[str, float] = Field(default_factory=dict)

    def price(self, ticker: Optional[str]) -> Optional[float]:
        if not ticker:
            return None
        value = self.prices.get(ticker)
        if value is None or not np.isfinite(value) or value <= 0:
            return None
        return float(value)


class PriceTable:
    """Read-only, date-ordered price history with one column per ticker.

    Missing observations are stored as NaN. Non-positive values are treated
    the same as missing when the table is built.
    """

    def __init__(self, frame: pd.DataFrame):
        index = pd.DatetimeIndex(pd.to_datetime(frame.index)).normalize()
        if index.has_duplicates:
            raise ValueError("Price table contains duplicate dates")
        if not index.is_monotonic_increasing:
            raise ValueError("Price table dates must be in ascending order")

        prices = pd.DataFrame(
            {
                column: pd.to_numeric(frame[column], errors="coerce").to_numpy(dtype=float)
                for column in frame.columns
            },
            index=index,
            columns=list(frame.columns),
            dtype=float
        )
        self._frame = prices.where(np.isfinite(prices) & (prices > 0))

    @classmethod
    def from_rows(cls, rows: Sequence[PriceRow]) -> "PriceTable":
        frame = pd.DataFrame(
            [row.prices for row in rows],
            index=pd.to_datetime([row.date for row in rows]),
            dtype=float
        )
        return cls(frame)

    @classmethod
    def from_mapping(cls, data: Mapping[date, Mapping[str, float]]) -> "PriceTable":
        rows = [PriceRow(date=d, prices=dict(p)) for d, p in data.items()]
        return cls.from_rows(rows)

    def __len__(self) -> int:
        return len(self._frame)

    def __iter__(self) -> Iterator[PriceRow]:
        for timestamp, series in self._frame.iterrows():
            yield PriceRow(
                date=timestamp.date(),
                prices={t: float(p) for t, p in series.items() if pd.notna(p)}
            )

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame.copy()

    @property
    def dates(self) -> list[date]:
        return [ts.date() for ts in self._frame.index]

    @property
    def tickers(self) -> list[str]:
        return list(self._frame.columns)

    @property
    def empty(self) -> bool:
        return self._frame.empty

    def contains(self, day: date) -> bool:
        return pd.Timestamp(day) in self._frame.index

    def between(self, start: date, end: date) -> "PriceTable":
        mask = (self._frame.index >= pd.Timestamp(start)) & (self._frame.index <= pd.Timestamp(end))
        return PriceTable(self._frame.loc[mask])

    def price_on(self, day: date, ticker: str) -> Optional[float]:
        if ticker not in self._frame.columns or not self.contains(day):
            return None
        value = self._frame.at[pd.Timestamp(day), ticker]
        return float(value) if pd.notna(value) else None

    def valid_prices(self, ticker: str) -> pd.Series:
        if ticker not in self._frame.columns:
            return pd.Series(dtype=float)
        return self._frame[ticker].dropna()

    def monthly_closes(self, ticker: str) -> pd.Series:
        """Last valid price of each calendar month, indexed by its actual date."""
        prices = self.valid_prices(ticker)
        if prices.empty:
            return prices
        month_keys = prices.index.to_period("M")
        return prices.groupby(month_keys).tail(1)

    def first_date_on_or_after(self, day: date) -> Optional[date]:
        later = self._frame.index[self._frame.index >= pd.Timestamp(day)]
        return later[0].date() if len(later) else None


def fx_adjusted_price(row: PriceRow, ticker: str, fx_ticker: Optional[str]) -> Optional[float]:
    price = row.price(ticker)
    if price is None:
        return None
    fx_rate = row.price(fx_ticker) if fx_ticker else None
    return price * (fx_rate if fx_rate is not None else 1.0)
