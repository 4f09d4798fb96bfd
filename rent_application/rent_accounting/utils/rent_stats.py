"""
Tenant and rent statistics per property
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
import logging

from rent_application.rent_accounting.core.models import Payment, PaymentStatus, ScheduleStatus, ref_id

logger = logging.getLogger(__name__)


def classify_payment(payment: Payment, today: date) -> ScheduleStatus:
    """
    paid / due / pending for a single payment record
    Unpaid payments are due once today is past their due date (or creation date)
    """
    if payment.status == PaymentStatus.SUCCEEDED:
        return ScheduleStatus.PAID

    rent_due_date = payment.rent_due_date()
    if rent_due_date is not None and today > rent_due_date:
        return ScheduleStatus.DUE
    return ScheduleStatus.PENDING


def _tenant_name(tenant: Any) -> str:
    if not isinstance(tenant, dict):
        return ''
    return tenant.get('name') or f"{tenant.get('firstName') or ''} {tenant.get('lastName') or ''}".strip()


def calculate_tenant_rent_stats(
    properties: Iterable[Dict[str, Any]],
    payments: Iterable[Payment],
    today: Optional[date] = None
) -> dict:
    """
    Summarise occupied units and rent status (paid / due / pending) for each property

    Returns:
        Totals across all properties plus a per-property breakdown
    """
    today = today or date.today()
    payments = list(payments)

    active_tenants = set()
    property_stats: List[dict] = []
    totals = {status: Decimal('0') for status in (ScheduleStatus.PAID, ScheduleStatus.DUE, ScheduleStatus.PENDING)}

    for property_doc in properties:
        property_id = ref_id(property_doc.get('_id'))
        units = property_doc.get('units') or []
        occupied_units = [u for u in units if u.get('status') == 'OCCUPIED' and u.get('tenant')]

        for unit in occupied_units:
            active_tenants.add(ref_id(unit.get('tenant')))

        breakdown = {status: Decimal('0') for status in totals}
        for payment in payments:
            if payment.property_id != property_id:
                continue
            breakdown[classify_payment(payment, today)] += payment.amount

        for status, amount in breakdown.items():
            totals[status] += amount

        property_stats.append({
            'propertyId': property_id,
            'propertyName': property_doc.get('title'),
            'propertyAddress': property_doc.get('address'),
            'activeTenants': len(occupied_units),
            'totalUnits': len(units),
            'pendingRent': float(breakdown[ScheduleStatus.PENDING]),
            'dueRent': float(breakdown[ScheduleStatus.DUE]),
            'paidRent': float(breakdown[ScheduleStatus.PAID]),
            'tenantDetails': [
                {
                    'tenantId': ref_id(unit.get('tenant')),
                    'tenantName': _tenant_name(unit.get('tenant')),
                    'unitName': unit.get('name'),
                    'unitRent': unit.get('rentAmount'),
                }
                for unit in occupied_units
            ],
        })

    logger.info(f"📊 Rent stats for {len(property_stats)} properties, {len(active_tenants)} active tenants")
    return {
        'totalActiveTenants': len(active_tenants),
        'totalDueRent': float(totals[ScheduleStatus.DUE]),
        'totalPendingRent': float(totals[ScheduleStatus.PENDING]),
        'totalPaidRent': float(totals[ScheduleStatus.PAID]),
        'propertyTenantStats': property_stats,
    }
