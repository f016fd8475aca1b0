import logging
from typing import Optional, Sequence

from application.periodic_return_service import PeriodicReturnService
from application.simulation_service import PortfolioSimulationService
from application.statistics_service import StatisticsService
from domain.models import BacktestResult, InvalidPortfolio, Portfolio, SimulationParameters
from domain.price_table import PriceTable

logger = logging.getLogger(__name__)


class BacktestService:
    def __init__(
        self,
        simulator: Optional[PortfolioSimulationService] = None,
        statistics: Optional[StatisticsService] = None,
        periodic: Optional[PeriodicReturnService] = None
    ):
        self.simulator = simulator or PortfolioSimulationService()
        self.statistics = statistics or StatisticsService()
        self.periodic = periodic or PeriodicReturnService()

    def run_backtest(
        self,
        portfolios: Sequence[Portfolio],
        price_table: PriceTable,
        params: SimulationParameters
    ) -> list[BacktestResult]:
        results = []
        for portfolio in portfolios:
            curve = self.simulator.simulate(portfolio.legs, price_table, params)
            if isinstance(curve, InvalidPortfolio):
                logger.warning(f"Skipping portfolio '{portfolio.name}': {curve.reason}")
                continue

            results.append(BacktestResult(
                portfolio=portfolio,
                curve=curve,
                statistics=self.statistics.compute_stats(curve),
                monthly_returns=self.periodic.monthly_returns(curve)
            ))

        if not results:
            logger.warning("No valid portfolios. Make sure weights sum to 100%")
        return results
