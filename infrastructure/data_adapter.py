import logging
from typing import Optional

import pandas as pd

from domain.constants import DEFAULT_CURRENCY
from domain.models import AssetInfo
from domain.price_table import PriceTable

logger = logging.getLogger(__name__)


class PriceTableAdapter:
    @staticmethod
    def from_frame(df: pd.DataFrame, date_column: Optional[str] = None) -> PriceTable:
        """Build a PriceTable from an already-loaded wide price frame.

        The date comes from `date_column` when given, otherwise from the
        first column. Thousands separators are stripped, cells that are not
        positive numbers are dropped, and rows without any price are removed.
        """
        if df.empty or len(df.columns) < 2:
            raise ValueError("Price frame needs a date column and at least one asset column")

        date_column = date_column or df.columns[0]
        df = df.dropna(subset=[date_column])
        dates = pd.to_datetime(df[date_column].astype(str).str.strip())

        prices = df.drop(columns=[date_column])
        prices.columns = [str(c).strip() for c in prices.columns]
        prices = prices.loc[:, [c for c in prices.columns if c]]
        prices = prices.apply(PriceTableAdapter._clean_column)
        prices.index = pd.DatetimeIndex(dates)

        prices = prices.where(prices > 0).dropna(how="all").sort_index()
        if prices.empty:
            raise ValueError("No valid data rows found in price frame")

        logger.info(f"Loaded {len(prices.columns)} assets, {len(prices)} data points")
        return PriceTable(prices)

    @staticmethod
    def lookup_from_frame(df: pd.DataFrame) -> list[AssetInfo]:
        """Ticker, name, currency and FX columns, in that order."""
        assets = []
        for values in df.itertuples(index=False):
            cells = ["" if pd.isna(v) else str(v).strip() for v in values]
            if len(cells) < 2 or not cells[0] or not cells[1]:
                continue
            assets.append(AssetInfo(
                ticker=cells[0],
                name=cells[1],
                currency=cells[2] if len(cells) > 2 and cells[2] else DEFAULT_CURRENCY,
                fx_ticker=cells[3] if len(cells) > 3 and cells[3] else None
            ))

        if not assets:
            logger.warning("Lookup table is empty or has no data rows")
        return assets

    @staticmethod
    def _clean_column(column: pd.Series) -> pd.Series:
        if not pd.api.types.is_numeric_dtype(column):
            column = column.astype(str).str.replace(",", "", regex=False).str.strip()
        return pd.to_numeric(column, errors="coerce")
