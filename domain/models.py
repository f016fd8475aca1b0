from datetime import date
from enum import Enum
from typing import Optional

import pandas as pd
from pydantic import BaseModel, Field, field_validator

from domain.constants import DEFAULT_CURRENCY, DEFAULT_STARTING_CAPITAL


class AllocationLeg(BaseModel):
    ticker: str = Field(min_length=1)
    weight_percent: float = Field(ge=0)
    fx_ticker: Optional[str] = None

    @field_validator("fx_ticker")
    @classmethod
    def blank_fx_means_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class SimulationParameters(BaseModel):
    starting_capital: float = Field(default=DEFAULT_STARTING_CAPITAL, gt=0)
    rebalance_frequency: str = Field(pattern="^(monthly|quarterly|yearly)$")
    start_date: date
    end_date: date

    @field_validator("end_date")
    @classmethod
    def end_not_before_start(cls, v: date, info) -> date:
        if "start_date" in info.data and v < info.data["start_date"]:
            raise ValueError("end_date must not be before start_date")
        return v


class TrendParameters(BaseModel):
    ticker: str = Field(min_length=1)
    start_date: date
    end_date: date
    annual_risk_free_rate: float = Field(gt=-1)
    commission_rate: float = Field(ge=0, lt=1)

    @field_validator("end_date")
    @classmethod
    def end_not_before_start(cls, v: date, info) -> date:
        if "start_date" in info.data and v < info.data["start_date"]:
            raise ValueError("end_date must not be before start_date")
        return v


class WithdrawalParameters(BaseModel):
    annual_rate_percent: float = Field(ge=0, le=100)
    annual_inflation_percent: float = Field(ge=-100)


class Portfolio(BaseModel):
    name: str
    legs: list[AllocationLeg]


class EquityPoint(BaseModel):
    date: date
    value: float
    drawdown_percent: float = Field(le=0)


class EquityCurve(BaseModel):
    points: list[EquityPoint]
    rebalance_dates: list[date] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)

    @property
    def values(self) -> list[float]:
        return [p.value for p in self.points]

    @property
    def dates(self) -> list[date]:
        return [p.date for p in self.points]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                'Value': self.values,
                'Drawdown': [p.drawdown_percent for p in self.points],
            },
            index=pd.to_datetime(self.dates)
        )


class InvalidPortfolio(BaseModel):
    reason: str


class PortfolioStatistics(BaseModel):
    starting_value: float
    ending_value: float
    years: float
    total_return_percent: float
    cagr_percent: float
    volatility_percent: float
    sharpe_ratio: float
    max_drawdown_percent: float
    current_drawdown_percent: float


class PeriodicReturnRow(BaseModel):
    year: int
    monthly: list[Optional[float]] = Field(min_length=12, max_length=12)
    full_year: Optional[float]


class BacktestResult(BaseModel):
    portfolio: Portfolio
    curve: EquityCurve
    statistics: Optional[PortfolioStatistics]
    monthly_returns: dict[int, PeriodicReturnRow]


class WithdrawalYearRecord(BaseModel):
    year_index: int
    date: date
    starting_value: float
    year_return_percent: Optional[float]
    pre_withdrawal_value: float
    effective_withdrawal_rate_percent: float
    withdrawal_amount: float
    ending_value: float


class TrendSignalState(str, Enum):
    INVESTED = "INVESTED"
    OUT_OF_MARKET = "OUT_OF_MARKET"


class SignalChangeEvent(BaseModel):
    date: date
    new_state: TrendSignalState
    price_at_change: float
    benchmark_value_at_change: float
    strategy_value_at_change: float


class TrendPoint(BaseModel):
    date: date
    price: float
    sma: float
    signal: TrendSignalState
    benchmark_value: float
    strategy_value: float


class TrendResult(BaseModel):
    ticker: str
    points: list[TrendPoint]
    events: list[SignalChangeEvent]
    benchmark_curve: EquityCurve
    strategy_curve: EquityCurve
    benchmark_statistics: Optional[PortfolioStatistics]
    strategy_statistics: Optional[PortfolioStatistics]
    trade_count: int
    round_trips: int
    successful_round_trips: int
    success_rate: Optional[float]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                'Price': [p.price for p in self.points],
                'SMA': [p.sma for p in self.points],
                'Signal': [p.signal.value for p in self.points],
                'Benchmark Equity': [p.benchmark_value for p in self.points],
                'Strategy Equity': [p.strategy_value for p in self.points],
                'Benchmark Drawdown': [p.drawdown_percent for p in self.benchmark_curve.points],
                'Strategy Drawdown': [p.drawdown_percent for p in self.strategy_curve.points],
            },
            index=pd.to_datetime([p.date for p in self.points])
        )


class AssetInfo(BaseModel):
    ticker: str = Field(min_length=1)
    name: str
    currency: str = DEFAULT_CURRENCY
    fx_ticker: Optional[str] = None

    @field_validator("fx_ticker")
    @classmethod
    def blank_fx_means_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class AssetYearReturn(BaseModel):
    year: int
    return_percent: float
    start_date: date
    start_price: float
    end_date: date
    end_price: float


class AssetPeriodReturn(BaseModel):
    years: int
    return_percent: float
    start_date: date
    start_price: float
    end_date: date
    end_price: float


class AssetPriceRange(BaseModel):
    first_date: date
    first_price: float
    last_date: date
    last_price: float
    months: int
    cagr_percent: float


class AssetDrawdown(BaseModel):
    drawdown_percent: float
    current_price: float
    current_date: date
    high_price: float
    high_date: date
    is_at_high: bool


class MonthlyPriceRow(BaseModel):
    ticker: str
    name: str
    prices: list[Optional[float]]
    sma: Optional[float]
    signal: Optional[str]


class MonthlyPriceSnapshot(BaseModel):
    months: list[str]
    assets: list[MonthlyPriceRow]


class RankedAsset(BaseModel):
    ticker: str
    name: str
    currency: str
    fx_ticker: Optional[str]
    return_percent: float
    fx_return_percent: Optional[float]
    converted_return_percent: float
    start_date: date
    start_price: float
    end_date: date
    end_price: float
