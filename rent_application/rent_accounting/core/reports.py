"""
Due Rent Report
Filters, sorts and summarises outstanding rent payments
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Tuple
import logging

from rent_application.rent_accounting.core.models import Payment, PaymentStatus, to_decimal
from rent_application.rent_accounting.utils.date_utils import parse_date

logger = logging.getLogger(__name__)

DEFAULT_REPORT_STATUSES = (PaymentStatus.PENDING.value, 'OVERDUE')
SORT_KEYS = ('dueDate', 'amount', 'tenant', 'property')


@dataclass
class DueRentFilters:
    """Report filters - mirrors the due rent report query string"""
    property_id: Optional[str] = None
    unit_id: Optional[str] = None
    tenant_id: Optional[str] = None
    statuses: Tuple[str, ...] = DEFAULT_REPORT_STATUSES
    due_date_from: Optional[date] = None
    due_date_to: Optional[date] = None
    amount_from: Optional[Decimal] = None
    amount_to: Optional[Decimal] = None
    sort_by: str = 'dueDate'
    sort_order: str = 'asc'
    page: int = 1
    limit: int = 50

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'DueRentFilters':
        data = data or {}
        status = data.get('status')
        sort_by = data.get('sortBy') or 'dueDate'
        if sort_by not in SORT_KEYS:
            raise ValueError(f"sortBy must be one of {', '.join(SORT_KEYS)}")

        return cls(
            property_id=data.get('propertyId'),
            unit_id=data.get('unitId'),
            tenant_id=data.get('tenantId'),
            statuses=(str(status).upper(),) if status else DEFAULT_REPORT_STATUSES,
            due_date_from=parse_date(data.get('dueDateFrom')),
            due_date_to=parse_date(data.get('dueDateTo')),
            amount_from=to_decimal(data['amountFrom']) if data.get('amountFrom') not in (None, '') else None,
            amount_to=to_decimal(data['amountTo']) if data.get('amountTo') not in (None, '') else None,
            sort_by=sort_by,
            sort_order='desc' if data.get('sortOrder') == 'desc' else 'asc',
            page=max(1, int(data.get('page') or 1)),
            limit=max(1, int(data.get('limit') or 50)),
        )


def _matches(payment: Payment, filters: DueRentFilters) -> bool:
    if filters.property_id and payment.property_id != str(filters.property_id):
        return False
    if filters.unit_id and payment.unit_id != str(filters.unit_id):
        return False
    if filters.tenant_id and payment.tenant_id != str(filters.tenant_id):
        return False
    if payment.status not in filters.statuses:
        return False

    if filters.due_date_from or filters.due_date_to:
        due = parse_date(payment.due_date)
        if due is None:
            return False
        if filters.due_date_from and due < filters.due_date_from:
            return False
        if filters.due_date_to and due > filters.due_date_to:
            return False

    if filters.amount_from is not None and payment.amount < filters.amount_from:
        return False
    if filters.amount_to is not None and payment.amount > filters.amount_to:
        return False
    return True


def _sort_key(sort_by: str):
    if sort_by == 'amount':
        return lambda p: (False, p.amount)
    if sort_by == 'tenant':
        return lambda p: (p.tenant_id is None, p.tenant_id or '')
    if sort_by == 'property':
        return lambda p: (p.property_id is None, p.property_id or '')
    # Payments without a due date sort last
    return lambda p: (parse_date(p.due_date) is None, parse_date(p.due_date) or date.min)


def build_due_rent_report(payments: Iterable[Payment], filters: Optional[DueRentFilters] = None) -> dict:
    """
    Build the due rent report

    Returns:
        Dict with the requested page of payments, pagination, summary and status breakdown
    """
    filters = filters or DueRentFilters()
    matched = [p for p in payments if _matches(p, filters)]
    matched.sort(key=_sort_key(filters.sort_by), reverse=filters.sort_order == 'desc')

    start = (filters.page - 1) * filters.limit
    page_items = matched[start:start + filters.limit]

    amounts = [p.amount for p in matched]
    total_amount = sum(amounts, Decimal('0'))
    summary = {
        'totalAmount': float(total_amount),
        'totalCount': len(matched),
        'averageAmount': float(total_amount / len(amounts)) if amounts else 0.0,
        'minAmount': float(min(amounts)) if amounts else 0.0,
        'maxAmount': float(max(amounts)) if amounts else 0.0,
    }

    breakdown: Dict[str, Dict[str, Any]] = {}
    for payment in matched:
        bucket = breakdown.setdefault(payment.status, {'count': 0, 'totalAmount': Decimal('0')})
        bucket['count'] += 1
        bucket['totalAmount'] += payment.amount

    total_pages = (len(matched) + filters.limit - 1) // filters.limit

    logger.info(f"📊 Due rent report: {len(matched)} matching payment(s), page {filters.page}/{max(total_pages, 1)}")
    return {
        'payments': [p.to_dict() for p in page_items],
        'pagination': {
            'currentPage': filters.page,
            'totalPages': total_pages,
            'totalCount': len(matched),
            'hasNextPage': filters.page < total_pages,
            'hasPrevPage': filters.page > 1,
        },
        'summary': summary,
        'statusBreakdown': [
            {'status': status, 'count': bucket['count'], 'totalAmount': float(bucket['totalAmount'])}
            for status, bucket in breakdown.items()
        ],
    }
