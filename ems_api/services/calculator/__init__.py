from .base import PayrollCalculator
from .prorated_calculator import ProratedPayrollCalculator

__all__ = ["PayrollCalculator", "ProratedPayrollCalculator"]
