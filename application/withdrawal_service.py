import logging

from domain.calculations import drawdown_percent
from domain.models import EquityCurve, EquityPoint, WithdrawalParameters, WithdrawalYearRecord
from domain.withdrawal_account import WithdrawalAccount

logger = logging.getLogger(__name__)


class WithdrawalService:
    def apply_withdrawals(self, curve: EquityCurve, annual_rate_percent: float,
                          annual_inflation_percent: float) -> EquityCurve:
        overlay, _ = self._replay(curve, annual_rate_percent, annual_inflation_percent)
        return overlay

    def withdrawal_detail(self, curve: EquityCurve, annual_rate_percent: float,
                          annual_inflation_percent: float) -> list[WithdrawalYearRecord]:
        _, records = self._replay(curve, annual_rate_percent, annual_inflation_percent)
        return records

    def _replay(self, curve: EquityCurve, annual_rate_percent: float,
                annual_inflation_percent: float) -> tuple[EquityCurve, list[WithdrawalYearRecord]]:
        params = WithdrawalParameters(
            annual_rate_percent=annual_rate_percent,
            annual_inflation_percent=annual_inflation_percent
        )
        if not curve.points:
            return EquityCurve(points=[]), []

        first = curve.points[0]
        account = WithdrawalAccount(
            first.date,
            first.value,
            params.annual_rate_percent,
            params.annual_inflation_percent
        )

        running_max = first.value
        points = [EquityPoint(date=first.date, value=first.value, drawdown_percent=0.0)]
        records = []

        for previous, current in zip(curve.points[:-1], curve.points[1:]):
            record = account.apply_period(current.date, previous.value, current.value)
            if record is not None:
                logger.debug(
                    f"Withdrawal {record.year_index} on {record.date}: "
                    f"{record.withdrawal_amount:,.2f} at {record.effective_withdrawal_rate_percent:.2f}%"
                )
                records.append(record)

            running_max = max(running_max, account.balance)
            points.append(EquityPoint(
                date=current.date,
                value=account.balance,
                drawdown_percent=drawdown_percent(account.balance, running_max)
            ))

        logger.info(
            f"Applied {len(records)} withdrawals at {annual_rate_percent:.2f}% "
            f"(inflation {annual_inflation_percent:.2f}%): final value {account.balance:,.2f}"
        )
        return EquityCurve(points=points), records
