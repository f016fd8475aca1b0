from typing import Optional

from domain.calculations import (
    annualized_volatility,
    calculate_cagr,
    periodic_returns,
    year_fraction,
)
from domain.models import EquityCurve, PortfolioStatistics


class StatisticsService:
    def compute_stats(self, curve: EquityCurve) -> Optional[PortfolioStatistics]:
        return self._summarize(curve, risk_free_percent=0.0)

    def compute_excess_return_stats(self, curve: EquityCurve,
                                    annual_risk_free_rate: float) -> Optional[PortfolioStatistics]:
        return self._summarize(curve, risk_free_percent=annual_risk_free_rate * 100.0)

    @staticmethod
    def _summarize(curve: EquityCurve, risk_free_percent: float) -> Optional[PortfolioStatistics]:
        if len(curve) < 2:
            return None

        first, last = curve.points[0], curve.points[-1]
        if first.value <= 0:
            return None

        years = year_fraction(first.date, last.date)
        cagr = calculate_cagr(first.value, last.value, years)
        volatility = annualized_volatility(periodic_returns(curve.values))
        sharpe = (cagr - risk_free_percent) / volatility if volatility > 0 else 0.0

        return PortfolioStatistics(
            starting_value=first.value,
            ending_value=last.value,
            years=years,
            total_return_percent=(last.value - first.value) / first.value * 100.0,
            cagr_percent=cagr,
            volatility_percent=volatility,
            sharpe_ratio=sharpe,
            max_drawdown_percent=min(p.drawdown_percent for p in curve.points),
            current_drawdown_percent=last.drawdown_percent
        )
