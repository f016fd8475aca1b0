from datetime import date
from typing import Optional

from domain.calculations import inflation_adjusted_rate, months_between, percent_change
from domain.constants import WITHDRAWAL_INTERVAL_MONTHS
from domain.models import WithdrawalYearRecord


class WithdrawalAccount:
    def __init__(self, start_date: date, start_value: float,
                 annual_rate_percent: float, annual_inflation_percent: float):
        self.balance = start_value
        self.annual_rate_percent = annual_rate_percent
        self.annual_inflation_percent = annual_inflation_percent
        self.year_index = 0
        self.last_withdrawal_date = start_date
        self.balance_after_last_withdrawal = start_value
        self.curve_value_at_last_withdrawal = start_value

    def apply_period(self, current_date: date, previous_curve_value: float,
                     curve_value: float) -> Optional[WithdrawalYearRecord]:
        if previous_curve_value > 0:
            self.balance *= curve_value / previous_curve_value

        if months_between(self.last_withdrawal_date, current_date) < WITHDRAWAL_INTERVAL_MONTHS:
            return None

        return self._withdraw(current_date, curve_value)

    def _withdraw(self, current_date: date, curve_value: float) -> WithdrawalYearRecord:
        rate = inflation_adjusted_rate(
            self.annual_rate_percent,
            self.annual_inflation_percent,
            self.year_index
        )
        pre_withdrawal = self.balance
        self.balance = max(0.0, pre_withdrawal * (1.0 - rate / 100.0))

        record = WithdrawalYearRecord(
            year_index=self.year_index,
            date=current_date,
            starting_value=self.balance_after_last_withdrawal,
            year_return_percent=percent_change(self.curve_value_at_last_withdrawal, curve_value),
            pre_withdrawal_value=pre_withdrawal,
            effective_withdrawal_rate_percent=rate,
            withdrawal_amount=pre_withdrawal - self.balance,
            ending_value=self.balance
        )

        self.year_index += 1
        self.last_withdrawal_date = current_date
        self.balance_after_last_withdrawal = self.balance
        self.curve_value_at_last_withdrawal = curve_value
        return record
