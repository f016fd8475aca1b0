WEIGHT_TOLERANCE_PERCENT = 0.01
DAYS_PER_YEAR = 365.25
MONTHS_PER_YEAR = 12

# Volatility annualisation assumes one equity point per month.
PERIODS_PER_YEAR = 12

REBALANCE_INTERVAL_MONTHS = {
    "monthly": 1,
    "quarterly": 3,
    "yearly": 12,
}

WITHDRAWAL_INTERVAL_MONTHS = 12

SMA_WINDOW_MONTHS = 10
SNAPSHOT_MONTHS = 13
ATH_TOLERANCE_PERCENT = 0.01

DEFAULT_CURRENCY = "PLN"
DEFAULT_STARTING_CAPITAL = 10000.0
AVAILABILITY_LOOKBACK_ROWS = 5
