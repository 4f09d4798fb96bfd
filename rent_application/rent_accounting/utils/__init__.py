"""
Utility functions for rent accounting

Only the date helpers are re-exported here: rent_stats and invoice_planner
depend on core.models, which itself imports date_utils.
"""

from .date_utils import (
    MonthKey,
    InvalidDateError,
    parse_date,
    eomonth,
    add_months,
    is_same_month,
    period_key,
    parse_period,
)

__all__ = [
    'MonthKey',
    'InvalidDateError',
    'parse_date',
    'eomonth',
    'add_months',
    'is_same_month',
    'period_key',
    'parse_period',
]
