import logging
from typing import Sequence, Union

from domain.account import RebalancingAccount
from domain.constants import WEIGHT_TOLERANCE_PERCENT
from domain.models import AllocationLeg, EquityCurve, InvalidPortfolio, SimulationParameters
from domain.price_table import PriceTable

logger = logging.getLogger(__name__)


class PortfolioSimulationService:
    def simulate(
        self,
        allocation: Sequence[AllocationLeg],
        price_table: PriceTable,
        params: SimulationParameters
    ) -> Union[EquityCurve, InvalidPortfolio]:
        invalid = self._validate(allocation, price_table, params)
        if invalid is not None:
            logger.warning(f"Portfolio not simulated: {invalid.reason}")
            return invalid

        window = price_table.between(params.start_date, params.end_date)

        account = RebalancingAccount(allocation, params.starting_capital, params.rebalance_frequency)

        rows = iter(window)
        points = [account.open_positions(next(rows))]
        for row in rows:
            points.append(account.apply_tick(row))
            if account.last_rebalance_date == row.date:
                logger.debug(f"Rebalanced on {row.date} at {account.value:,.2f}")

        logger.info(
            f"Simulated {len(allocation)} legs over {len(points)} dates: "
            f"final value {account.value:,.2f}, {len(account.rebalance_dates)} rebalances"
        )
        return EquityCurve(points=points, rebalance_dates=account.rebalance_dates)

    @staticmethod
    def _validate(
        allocation: Sequence[AllocationLeg],
        price_table: PriceTable,
        params: SimulationParameters
    ) -> Union[InvalidPortfolio, None]:
        if not allocation:
            return InvalidPortfolio(reason="invalid — portfolio has no assets")

        total_weight = sum(leg.weight_percent for leg in allocation)
        if abs(total_weight - 100) > WEIGHT_TOLERANCE_PERCENT:
            return InvalidPortfolio(
                reason=f"invalid — weights do not sum to 100% (total {total_weight:.2f}%)"
            )

        for label, day in (("start", params.start_date), ("end", params.end_date)):
            if not price_table.contains(day):
                return InvalidPortfolio(reason=f"invalid — {label} date {day} is not in the price table")

        if len(price_table.between(params.start_date, params.end_date)) < 2:
            return InvalidPortfolio(reason="invalid — date range holds fewer than 2 price rows")

        return None
