#!/usr/bin/env python3
"""
Rent schedule generation tests
Lease from 2024-01-15 to 2024-06-15 at 1000/month, evaluated on 2024-03-20
"""
from datetime import date
from decimal import Decimal

import pytest

from rent_application.rent_accounting.core.models import (
    InvalidAmountError,
    InvalidLeaseError,
    InvalidPaymentError,
    Lease,
    Payment,
    ScheduleStatus,
    StatusPolicy,
)
from rent_application.rent_accounting.schedule.generator import (
    RentScheduleEngine,
    build_payment_map,
    derive_status,
    generate_rent_schedule,
)
from rent_application.rent_accounting.utils.date_utils import (
    InvalidDateError,
    MonthKey,
    add_months,
    eomonth,
    parse_date,
)

TODAY = date(2024, 3, 20)

LEASE_PAYLOAD = {
    "_id": "lease-1",
    "unit": "unit-101",
    "tenant": "tenant-1",
    "property": "prop-1",
    "leaseStartDate": "2024-01-15",
    "leaseEndDate": "2024-06-15",
    "monthlyRent": 1000,
    "securityDeposit": 2000,
    "status": "ACTIVE",
    "agreementNumber": "LA-000001",
}


def make_lease(**overrides):
    payload = dict(LEASE_PAYLOAD)
    payload.update(overrides)
    return Lease.from_dict(payload)


def make_payment(month, status="SUCCEEDED", unit_id="unit-101", **extra):
    metadata = {"month": month, "unitId": unit_id}
    metadata.update(extra.pop("metadata", {}))
    payload = {"_id": f"pay-{month}-{status}", "amount": 1000, "status": status, "metadata": metadata}
    payload.update(extra)
    return Payment.from_dict(payload)


def statuses(schedule):
    return [entry.status for entry in schedule]


# --- Example scenarios -----------------------------------------------------

def test_no_payments_overdue_by_date():
    schedule = generate_rent_schedule(make_lease(), [], today=TODAY)

    assert [entry.month for entry in schedule] == [
        "January 2024", "February 2024", "March 2024", "April 2024", "May 2024", "June 2024",
    ]
    assert statuses(schedule)[:2] == [ScheduleStatus.OVERDUE, ScheduleStatus.OVERDUE]
    assert statuses(schedule)[3:] == [ScheduleStatus.UPCOMING] * 3
    assert [entry.is_current_month for entry in schedule] == [False, False, True, False, False, False]


def test_no_payments_metadata_due_date_policy():
    schedule = generate_rent_schedule(
        make_lease(), [], today=TODAY, status_policy=StatusPolicy.METADATA_DUE_DATE
    )

    assert statuses(schedule)[:2] == [ScheduleStatus.DUE, ScheduleStatus.DUE]
    assert statuses(schedule)[3:] == [ScheduleStatus.UPCOMING] * 3


def test_succeeded_payment_marks_month_paid():
    payment = make_payment("February 2024")
    schedule = generate_rent_schedule(make_lease(), [payment], today=TODAY)

    february = schedule[1]
    assert february.status == ScheduleStatus.PAID
    assert february.payment is payment
    assert statuses(schedule)[0] == ScheduleStatus.OVERDUE
    assert statuses(schedule)[3:] == [ScheduleStatus.UPCOMING] * 3


def test_long_lease_is_capped_at_twelve_months():
    lease = make_lease(leaseStartDate="2023-01-01", leaseEndDate="2025-01-01")
    schedule = generate_rent_schedule(lease, [], today=TODAY)

    assert len(schedule) == 12
    assert schedule[0].due_date == date(2023, 1, 1)
    assert schedule[-1].due_date == date(2023, 12, 1)


def test_missing_lease_gives_empty_schedule():
    assert generate_rent_schedule(None, [make_payment("March 2024")], today=TODAY) == []


# --- Status rules -----------------------------------------------------------

def test_overdue_by_date_payment_statuses():
    payments = [
        make_payment("January 2024", status="FAILED"),
        make_payment("February 2024", status="PENDING"),
        make_payment("April 2024", status="PENDING"),
    ]
    schedule = generate_rent_schedule(make_lease(), payments, today=TODAY)

    assert schedule[0].status == ScheduleStatus.FAILED
    assert schedule[1].status == ScheduleStatus.OVERDUE
    assert schedule[3].status == ScheduleStatus.PENDING


def test_unknown_payment_status_falls_back_to_date_rule():
    payment = make_payment("February 2024", status="REFUNDED")
    schedule = generate_rent_schedule(make_lease(), [payment], today=TODAY)

    assert schedule[1].status == ScheduleStatus.OVERDUE
    assert schedule[1].payment is payment


def test_metadata_due_date_compares_payment_due_date():
    payments = [
        make_payment("April 2024", status="PENDING", metadata={"dueDate": "2024-03-10"}),
        make_payment("May 2024", status="PENDING", metadata={"dueDate": "5/15/2024"}),
        make_payment("June 2024", status="FAILED", createdAt="2024-03-01T10:00:00.000Z"),
    ]
    schedule = generate_rent_schedule(
        make_lease(), payments, today=TODAY, status_policy=StatusPolicy.METADATA_DUE_DATE
    )

    assert schedule[3].status == ScheduleStatus.DUE
    assert schedule[4].status == ScheduleStatus.PENDING
    assert schedule[5].status == ScheduleStatus.DUE


def test_metadata_due_date_without_dates_uses_schedule_due_date():
    payment = make_payment("February 2024", status="PENDING")
    status = derive_status(payment, date(2024, 2, 15), TODAY, StatusPolicy.METADATA_DUE_DATE)
    assert status == ScheduleStatus.DUE


def test_malformed_payment_due_date_propagates():
    payment = make_payment("April 2024", status="PENDING", metadata={"dueDate": "invalid"})
    with pytest.raises(InvalidDateError):
        generate_rent_schedule(
            make_lease(), [payment], today=TODAY, status_policy=StatusPolicy.METADATA_DUE_DATE
        )


def test_due_today_is_not_overdue():
    lease = make_lease(leaseStartDate="2024-03-20", leaseEndDate="2024-04-20")
    schedule = generate_rent_schedule(lease, [], today=TODAY)
    assert schedule[0].status == ScheduleStatus.UPCOMING


# --- Payment matching -----------------------------------------------------

def test_unit_filter_compares_ids_as_strings():
    payments = [
        make_payment("February 2024", unit_id=101),
        make_payment("March 2024", unit_id=202),
    ]
    lease = make_lease(unit="101")
    schedule = generate_rent_schedule(lease, payments, unit_id="101", today=TODAY)

    assert schedule[1].status == ScheduleStatus.PAID
    assert schedule[2].status == ScheduleStatus.OVERDUE
    assert schedule[2].payment is None


def test_payments_without_month_key_are_ignored():
    payments = [
        make_payment(None),
        make_payment("Feb 2024"),
        make_payment(" february 2024 ", status="PENDING"),
    ]
    payment_map = build_payment_map(payments)

    assert list(payment_map) == [MonthKey(2024, 2)]
    assert payment_map[MonthKey(2024, 2)].status == "PENDING"


def test_duplicate_month_last_payment_wins():
    payments = [
        make_payment("March 2024", status="FAILED"),
        make_payment("March 2024", status="SUCCEEDED"),
    ]
    schedule = generate_rent_schedule(make_lease(), payments, today=TODAY)
    assert schedule[2].status == ScheduleStatus.PAID


# --- Schedule shape ---------------------------------------------------------

def test_month_end_start_date_does_not_drift():
    lease = make_lease(leaseStartDate="2024-01-31", leaseEndDate="2024-05-31")
    schedule = generate_rent_schedule(lease, [], today=TODAY)

    assert [entry.due_date for entry in schedule] == [
        date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30), date(2024, 5, 31),
    ]


def test_end_date_is_inclusive():
    lease = make_lease(leaseStartDate="2024-01-15", leaseEndDate="2024-03-15")
    assert len(generate_rent_schedule(lease, [], today=TODAY)) == 3


@pytest.mark.parametrize("start,end,expected_length", [
    ("2024-01-15", "2024-01-15", 1),
    ("2024-01-15", "2024-02-14", 1),
    ("2024-01-15", "2024-06-15", 6),
    ("2022-05-01", "2030-05-01", 12),
])
def test_schedule_shape(start, end, expected_length):
    lease = make_lease(leaseStartDate=start, leaseEndDate=end, monthlyRent="1250.50")
    schedule = generate_rent_schedule(lease, [], today=TODAY)

    assert len(schedule) == expected_length
    assert all(entry.amount == Decimal("1250.50") for entry in schedule)
    assert all(a.due_date < b.due_date for a, b in zip(schedule, schedule[1:]))


def test_schedule_is_deterministic():
    payments = [make_payment("February 2024"), make_payment("March 2024", status="PENDING")]
    engine = RentScheduleEngine(StatusPolicy.METADATA_DUE_DATE)

    first = engine.generate_schedule(make_lease(), payments, today=TODAY)
    second = engine.generate_schedule(make_lease(), payments, today=TODAY)
    assert first == second


def test_schedule_entry_to_dict():
    payment = make_payment("February 2024")
    entry = generate_rent_schedule(make_lease(), [payment], today=TODAY)[1]

    assert entry.to_dict() == {
        "month": "February 2024",
        "dueDate": "2024-02-15",
        "amount": 1000.0,
        "status": "paid",
        "isCurrentMonth": False,
        "payment": payment.raw,
    }


# --- Lease parsing ----------------------------------------------------------

def test_lease_from_dict_normalises_references():
    lease = make_lease(tenant={"_id": "tenant-1", "name": "Ann"}, unit=101, status="terminated",
                       terminatedDate="2024-02-01T00:00:00.000Z")

    assert lease.tenant_id == "tenant-1"
    assert lease.unit_id == "101"
    assert lease.status == "TERMINATED"
    assert lease.terminated_date == date(2024, 2, 1)
    assert lease.monthly_rent == Decimal("1000")


@pytest.mark.parametrize("overrides", [
    {"monthlyRent": 0},
    {"monthlyRent": None},
    {"monthlyRent": "lots"},
    {"leaseStartDate": None},
    {"leaseEndDate": "2023-12-31"},
])
def test_invalid_lease_terms(overrides):
    with pytest.raises(InvalidLeaseError):
        make_lease(**overrides)


@pytest.mark.parametrize("payload", [
    "pay-1",
    None,
    {"_id": "pay-1", "metadata": "February 2024"},
    {"_id": "pay-1", "metadata": ["February 2024"]},
])
def test_invalid_payment_documents(payload):
    with pytest.raises(InvalidPaymentError):
        Payment.from_dict(payload)


def test_invalid_payment_amount_is_not_a_lease_error():
    with pytest.raises(InvalidAmountError) as excinfo:
        Payment.from_dict({"amount": "lots", "status": "PENDING"})
    assert not isinstance(excinfo.value, InvalidLeaseError)


def test_malformed_lease_date_raises():
    with pytest.raises(InvalidDateError):
        make_lease(leaseStartDate="invalid")


# --- Date utilities ---------------------------------------------------------

def test_month_key_round_trip_format():
    assert str(MonthKey(2024, 1)) == "January 2024"
    assert MonthKey.parse("DECEMBER 2023") == MonthKey(2023, 12)
    with pytest.raises(ValueError):
        MonthKey.parse("2024-01")


def test_add_months_and_eomonth():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 11, 15), 3) == date(2024, 2, 15)
    assert eomonth(date(2024, 2, 10)) == date(2024, 2, 29)
    assert eomonth(date(2024, 12, 10)) == date(2024, 12, 31)


def test_parse_date_formats():
    assert parse_date("2024-01-15") == date(2024, 1, 15)
    assert parse_date("1/15/2024") == date(2024, 1, 15)
    assert parse_date("2024-01-15T00:00:00.000Z") == date(2024, 1, 15)
    assert parse_date(None) is None
    assert parse_date("") is None
