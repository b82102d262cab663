from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from .base import PayrollCalculator

CENT = Decimal("0.01")


class ProratedPayrollCalculator(PayrollCalculator):
    """base * present/working + allowances - deductions, not below 0."""

    def net_salary(self, base_salary, allowances, deductions, working_days, present_days):
        base = Decimal(base_salary or 0)
        if working_days:
            ratio = min(Decimal(present_days or 0) / Decimal(working_days), Decimal(1))
            earned = base * ratio
        else:
            earned = Decimal(0)
        net = earned + Decimal(allowances or 0) - Decimal(deductions or 0)
        return max(net, Decimal(0)).quantize(CENT, rounding=ROUND_HALF_UP)
