"""
Rent Schedule Generator
Derives the month-by-month rent schedule of a lease and matches payments to it

Months are stepped from the lease start date by calendar month while the due
date is on or before the lease end date, capped at a 12 month display window.
Every entry carries the full monthly rent (no proration for partial months).
"""

from datetime import date
from typing import Dict, Iterable, List, Optional
import logging

from rent_application.rent_accounting.core.models import (
    Lease,
    Payment,
    PaymentStatus,
    ScheduleEntry,
    ScheduleStatus,
    StatusPolicy,
)
from rent_application.rent_accounting.utils.date_utils import MonthKey, add_months, is_same_month

logger = logging.getLogger(__name__)

MAX_SCHEDULE_MONTHS = 12


def build_payment_map(payments: Iterable[Payment], unit_id: Optional[str] = None) -> Dict[MonthKey, Payment]:
    """
    Index payments by month key
    Payments without a usable metadata.month are skipped; later payments win
    """
    payment_map: Dict[MonthKey, Payment] = {}
    wanted_unit = str(unit_id) if unit_id is not None else None

    for payment in payments:
        if wanted_unit is not None and payment.unit_id != wanted_unit:
            continue

        key = payment.month_key
        if key is None:
            if payment.month:
                logger.debug(f"Skipping payment {payment.payment_id}: unrecognised month {payment.month!r}")
            continue

        payment_map[key] = payment

    return payment_map


def _status_overdue_by_date(payment: Optional[Payment], due_date: date, today: date) -> ScheduleStatus:
    is_overdue = due_date < today

    if payment is not None:
        if payment.status == PaymentStatus.SUCCEEDED:
            return ScheduleStatus.PAID
        if payment.status == PaymentStatus.PENDING:
            return ScheduleStatus.OVERDUE if is_overdue else ScheduleStatus.PENDING
        if payment.status == PaymentStatus.FAILED:
            return ScheduleStatus.FAILED

    return ScheduleStatus.OVERDUE if is_overdue else ScheduleStatus.UPCOMING


def _status_metadata_due_date(payment: Optional[Payment], due_date: date, today: date) -> ScheduleStatus:
    if payment is not None:
        if payment.status == PaymentStatus.SUCCEEDED:
            return ScheduleStatus.PAID
        rent_due_date = payment.rent_due_date() or due_date
        return ScheduleStatus.DUE if today > rent_due_date else ScheduleStatus.PENDING

    return ScheduleStatus.DUE if due_date < today else ScheduleStatus.UPCOMING


_STATUS_RULES = {
    StatusPolicy.OVERDUE_BY_DATE: _status_overdue_by_date,
    StatusPolicy.METADATA_DUE_DATE: _status_metadata_due_date,
}


def derive_status(
    payment: Optional[Payment],
    due_date: date,
    today: date,
    status_policy: StatusPolicy = StatusPolicy.OVERDUE_BY_DATE
) -> ScheduleStatus:
    """Status of one schedule month under the given policy"""
    return _STATUS_RULES[StatusPolicy(status_policy)](payment, due_date, today)


def generate_rent_schedule(
    lease: Optional[Lease],
    payments: Iterable[Payment] = (),
    unit_id: Optional[str] = None,
    today: Optional[date] = None,
    status_policy: StatusPolicy = StatusPolicy.OVERDUE_BY_DATE,
    max_months: int = MAX_SCHEDULE_MONTHS
) -> List[ScheduleEntry]:
    """
    Generate the rent schedule for a lease

    Args:
        lease: Lease terms, None gives an empty schedule
        payments: Payment records to match by metadata.month
        unit_id: Only match payments whose metadata.unitId equals this id
        today: Reference date for overdue checks (defaults to date.today())
        status_policy: Which status rule to apply
        max_months: Display window cap
    Returns:
        Schedule entries in due date order
    """
    if lease is None:
        return []

    today = today or date.today()
    payment_map = build_payment_map(payments, unit_id)

    schedule: List[ScheduleEntry] = []
    month_index = 0
    due_date = lease.lease_start_date

    while due_date <= lease.lease_end_date and month_index < max_months:
        key = MonthKey.from_date(due_date)
        payment = payment_map.get(key)

        schedule.append(ScheduleEntry(
            month_key=key,
            due_date=due_date,
            amount=lease.monthly_rent,
            status=derive_status(payment, due_date, today, status_policy),
            is_current_month=is_same_month(due_date, today),
            payment=payment,
        ))

        month_index += 1
        # Always offset from the start date so a 31st start does not drift to the 28th
        due_date = add_months(lease.lease_start_date, month_index)

    logger.debug(
        f"Generated {len(schedule)} schedule months for lease {lease.lease_id} "
        f"({len(payment_map)} matched payment months, policy={StatusPolicy(status_policy).value})"
    )
    return schedule


class RentScheduleEngine:
    """
    Schedule generator bound to one status policy and display window
    """

    def __init__(
        self,
        status_policy: StatusPolicy = StatusPolicy.OVERDUE_BY_DATE,
        max_months: int = MAX_SCHEDULE_MONTHS
    ):
        self.status_policy = StatusPolicy(status_policy)
        self.max_months = max_months

    def generate_schedule(
        self,
        lease: Optional[Lease],
        payments: Iterable[Payment] = (),
        unit_id: Optional[str] = None,
        today: Optional[date] = None
    ) -> List[ScheduleEntry]:
        return generate_rent_schedule(
            lease,
            payments,
            unit_id=unit_id,
            today=today,
            status_policy=self.status_policy,
            max_months=self.max_months,
        )
