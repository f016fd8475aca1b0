import logging
from typing import Callable, Optional, Sequence, Union

from application.periodic_return_service import PeriodicReturnService
from domain.calculations import combine_returns
from domain.models import AssetInfo, AssetPeriodReturn, AssetYearReturn, RankedAsset
from domain.price_table import PriceTable

logger = logging.getLogger(__name__)

WindowReturn = Optional[Union[AssetYearReturn, AssetPeriodReturn]]


class RankingService:
    def __init__(self, periodic: Optional[PeriodicReturnService] = None):
        self.periodic = periodic or PeriodicReturnService()

    def rank_by_year(self, price_table: PriceTable, assets: Sequence[AssetInfo],
                     year: int) -> list[RankedAsset]:
        annual: dict[str, dict[int, AssetYearReturn]] = {}

        def year_return(ticker: str) -> WindowReturn:
            if ticker not in annual:
                annual[ticker] = self.periodic.asset_annual_returns(price_table, ticker)
            return annual[ticker].get(year)

        ranked = self._rank(assets, year_return)
        logger.info(f"Ranked {len(ranked)} of {len(assets)} assets for {year}")
        return ranked

    def rank_by_period(self, price_table: PriceTable, assets: Sequence[AssetInfo],
                       years: int) -> list[RankedAsset]:
        trailing: dict[str, WindowReturn] = {}

        def trailing_return(ticker: str) -> WindowReturn:
            if ticker not in trailing:
                trailing[ticker] = self.periodic.period_return(price_table, ticker, years)
            return trailing[ticker]

        ranked = self._rank(assets, trailing_return)
        logger.info(f"Ranked {len(ranked)} of {len(assets)} assets over trailing {years}y")
        return ranked

    @staticmethod
    def _rank(assets: Sequence[AssetInfo],
              window_return: Callable[[str], WindowReturn]) -> list[RankedAsset]:
        ranked = []
        for asset in assets:
            local = window_return(asset.ticker)
            if local is None:
                continue

            fx = window_return(asset.fx_ticker) if asset.fx_ticker else None
            fx_return = fx.return_percent if fx is not None else None
            converted = (
                combine_returns(local.return_percent, fx_return)
                if fx_return is not None else local.return_percent
            )

            ranked.append(RankedAsset(
                ticker=asset.ticker,
                name=asset.name,
                currency=asset.currency,
                fx_ticker=asset.fx_ticker,
                return_percent=local.return_percent,
                fx_return_percent=fx_return,
                converted_return_percent=converted,
                start_date=local.start_date,
                start_price=local.start_price,
                end_date=local.end_date,
                end_price=local.end_price
            ))

        return sorted(ranked, key=lambda r: r.return_percent, reverse=True)
