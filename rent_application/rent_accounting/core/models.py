"""
Data models for rent schedules
Mirrors the Lease / Payment documents served by the property backend
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional

from rent_application.rent_accounting.utils.date_utils import MonthKey, parse_date


class InvalidLeaseError(ValueError):
    """Raised when a lease payload is missing required terms"""


class InvalidPaymentError(ValueError):
    """Raised when a payment payload is not a usable document"""


class InvalidAmountError(ValueError):
    """Raised when a money amount cannot be read as a number"""


class LeaseStatus(str, Enum):
    ACTIVE = 'ACTIVE'
    ENDED = 'ENDED'
    TERMINATED = 'TERMINATED'
    INACTIVE = 'INACTIVE'
    EXPIRED = 'EXPIRED'


# Any of these marks a lease as ended regardless of its end date
ENDED_LEASE_STATUSES = frozenset({
    LeaseStatus.ENDED,
    LeaseStatus.TERMINATED,
    LeaseStatus.INACTIVE,
    LeaseStatus.EXPIRED,
})


class PaymentStatus(str, Enum):
    SUCCEEDED = 'SUCCEEDED'
    PENDING = 'PENDING'
    FAILED = 'FAILED'


class ScheduleStatus(str, Enum):
    """Derived per-month status of a schedule entry"""
    PAID = 'paid'
    PENDING = 'pending'
    OVERDUE = 'overdue'
    FAILED = 'failed'
    DUE = 'due'
    UPCOMING = 'upcoming'


class StatusPolicy(str, Enum):
    """
    How an unpaid month is judged late
    OVERDUE_BY_DATE: the month's due date is before today (lease / rent views)
    METADATA_DUE_DATE: today is past the payment's own metadata.dueDate (tenant dashboard)
    """
    OVERDUE_BY_DATE = 'overdueByDate'
    METADATA_DUE_DATE = 'metadataDueDate'


def ref_id(value: Any) -> Optional[str]:
    """Normalise a reference that may be an id or an embedded document"""
    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get('_id')
        if value is None:
            return None
    return str(value)


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidAmountError(f"Invalid amount: {value!r}") from e


@dataclass
class Lease:
    """Lease terms for one unit and tenant"""
    lease_start_date: date
    lease_end_date: date
    monthly_rent: Decimal

    lease_id: Optional[str] = None
    unit_id: Optional[str] = None
    tenant_id: Optional[str] = None
    property_id: Optional[str] = None

    status: str = LeaseStatus.ACTIVE.value
    security_deposit: Decimal = Decimal('0')
    terminated_date: Optional[date] = None
    move_out_date: Optional[date] = None
    agreement_number: Optional[str] = None

    # Original document, echoed back in API responses
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Lease':
        """
        Build a Lease from the backend JSON shape
        Raises InvalidLeaseError for missing terms and InvalidDateError for bad dates
        """
        if not isinstance(data, dict):
            raise InvalidLeaseError("Lease must be an object")

        start = parse_date(data.get('leaseStartDate'))
        end = parse_date(data.get('leaseEndDate'))
        if start is None or end is None:
            raise InvalidLeaseError("Lease requires leaseStartDate and leaseEndDate")
        if end < start:
            raise InvalidLeaseError(f"leaseEndDate ({end}) is before leaseStartDate ({start})")

        if data.get('monthlyRent') in (None, ''):
            raise InvalidLeaseError("Lease requires monthlyRent")
        try:
            monthly_rent = to_decimal(data['monthlyRent'])
        except InvalidAmountError as e:
            raise InvalidLeaseError(f"Invalid monthlyRent: {data['monthlyRent']!r}") from e
        if monthly_rent <= 0:
            raise InvalidLeaseError(f"monthlyRent must be positive, got {monthly_rent}")

        return cls(
            lease_start_date=start,
            lease_end_date=end,
            monthly_rent=monthly_rent,
            lease_id=ref_id(data.get('_id')),
            unit_id=ref_id(data.get('unit')),
            tenant_id=ref_id(data.get('tenant')),
            property_id=ref_id(data.get('property')),
            status=str(data.get('status') or LeaseStatus.ACTIVE.value).upper(),
            security_deposit=to_decimal(data.get('securityDeposit') or 0),
            terminated_date=parse_date(data.get('terminatedDate')),
            move_out_date=parse_date(data.get('moveOutDate')),
            agreement_number=data.get('agreementNumber'),
            raw=dict(data),
        )

    def to_dict(self) -> dict:
        """Original document with the current status applied"""
        result = dict(self.raw)
        result['status'] = self.status
        return result


@dataclass
class Payment:
    """A rent payment record; metadata.month joins it to a schedule month"""
    amount: Decimal
    status: str

    payment_id: Optional[str] = None
    tenant_id: Optional[str] = None
    method: Optional[str] = None
    paid_date: Any = None
    created_at: Any = None

    # metadata
    month: Optional[str] = None
    unit_id: Optional[str] = None
    property_id: Optional[str] = None
    due_date: Any = None

    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Payment':
        """
        Build a Payment from the backend JSON shape
        Raises InvalidPaymentError when the payment or its metadata is not an object
        """
        if not isinstance(data, dict):
            raise InvalidPaymentError("Payment must be an object")
        metadata = data.get('metadata') or {}
        if not isinstance(metadata, dict):
            raise InvalidPaymentError(f"Payment {data.get('_id')} metadata must be an object")

        return cls(
            amount=to_decimal(data.get('amount') or 0),
            status=str(data.get('status') or PaymentStatus.PENDING.value).upper(),
            payment_id=ref_id(data.get('_id')),
            tenant_id=ref_id(data.get('tenant')),
            method=data.get('method'),
            paid_date=data.get('paidDate'),
            created_at=data.get('createdAt'),
            month=metadata.get('month'),
            unit_id=ref_id(metadata.get('unitId')),
            property_id=ref_id(metadata.get('propertyId')),
            due_date=metadata.get('dueDate'),
            raw=dict(data),
        )

    @property
    def month_key(self) -> Optional[MonthKey]:
        """Parsed metadata.month, None when absent or not '<Month> <Year>'"""
        if not self.month:
            return None
        try:
            return MonthKey.parse(self.month)
        except ValueError:
            return None

    def rent_due_date(self) -> Optional[date]:
        """metadata.dueDate, falling back to createdAt"""
        return parse_date(self.due_date or self.created_at)

    def to_dict(self) -> dict:
        return dict(self.raw)


@dataclass
class ScheduleEntry:
    """One month of a rent schedule - computed, never stored"""
    month_key: MonthKey
    due_date: date
    amount: Decimal
    status: ScheduleStatus
    is_current_month: bool = False
    payment: Optional[Payment] = None

    @property
    def month(self) -> str:
        return str(self.month_key)

    def to_dict(self) -> dict:
        """Convert to the camelCase shape the dashboard renders"""
        return {
            'month': self.month,
            'dueDate': self.due_date.isoformat(),
            'amount': float(self.amount),
            'status': self.status.value,
            'isCurrentMonth': self.is_current_month,
            'payment': self.payment.to_dict() if self.payment else None,
        }
