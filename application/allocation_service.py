import math
import re
from datetime import date
from typing import Optional, Sequence

import pandas as pd

from domain.constants import AVAILABILITY_LOOKBACK_ROWS
from domain.models import AllocationLeg, AssetInfo
from domain.price_table import PriceTable

PRESET_PATTERN = re.compile(r"^(YTD|([1-9][0-9]*)Y)$")


class AllocationService:
    @staticmethod
    def total_weight(legs: Sequence[AllocationLeg]) -> float:
        return sum(leg.weight_percent for leg in legs)

    @staticmethod
    def auto_adjust_first_leg(legs: Sequence[AllocationLeg]) -> list[AllocationLeg]:
        """Set the first leg's weight so that all weights add up to 100."""
        adjusted = list(legs)
        if len(adjusted) < 2:
            return adjusted

        others = sum(leg.weight_percent for leg in adjusted[1:])
        adjusted[0] = adjusted[0].model_copy(update={"weight_percent": max(0.0, 100.0 - others)})
        return adjusted

    @staticmethod
    def generate_name(legs: Sequence[AllocationLeg]) -> str:
        named = [leg for leg in legs if leg.ticker and leg.weight_percent > 0]
        if not named:
            return "Portfolio"
        return "-".join(f"{leg.ticker}{math.floor(leg.weight_percent + 0.5)}" for leg in named)

    @staticmethod
    def available_tickers(
        price_table: PriceTable,
        start_date: Optional[date],
        lookup: Sequence[AssetInfo] = (),
        lookback_rows: int = AVAILABILITY_LOOKBACK_ROWS
    ) -> list[str]:
        lookup_tickers = {asset.ticker for asset in lookup}
        candidates = [t for t in price_table.tickers if not lookup_tickers or t in lookup_tickers]

        if start_date is None or not price_table.contains(start_date):
            return candidates

        dates = price_table.dates
        position = dates.index(pd.Timestamp(start_date).date())
        window = dates[max(0, position - lookback_rows):position + 1]
        return [
            t for t in candidates
            if any(price_table.price_on(day, t) is not None for day in window)
        ]

    @staticmethod
    def preset_start_date(price_table: PriceTable, end_date: date, preset: str) -> date:
        match = PRESET_PATTERN.match(preset)
        if match is None:
            raise ValueError(f"Unknown date preset: {preset}")
        if price_table.empty:
            raise ValueError("Price table is empty")

        if preset == "YTD":
            target = date(end_date.year, 1, 1)
        else:
            target = (pd.Timestamp(end_date) - pd.DateOffset(years=int(match.group(2)))).date()

        return price_table.first_date_on_or_after(target) or price_table.dates[0]
