"""
Monthly invoice planning
Works out which rent invoices a billing period still needs
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional
import logging

from rent_application.rent_accounting.core.models import ref_id, to_decimal
from rent_application.rent_accounting.utils.date_utils import eomonth, parse_period, period_key

logger = logging.getLogger(__name__)

DEFAULT_DUE_DAY = 5


@dataclass
class PlannedInvoice:
    property_id: str
    unit_id: str
    tenant_id: str
    amount: float
    due_date: date
    period: str

    def to_dict(self) -> dict:
        return {
            'property': self.property_id,
            'unitId': self.unit_id,
            'tenant': self.tenant_id,
            'amount': self.amount,
            'dueDate': self.due_date.isoformat(),
            'period': self.period,
            'status': 'PENDING',
        }


def invoice_due_date(period: str, due_day: int = DEFAULT_DUE_DAY) -> date:
    """Due date within a period, clamped to the last day of the month"""
    first_day = parse_period(period)
    last_day = eomonth(first_day)
    return first_day.replace(day=min(max(due_day, 1), last_day.day))


def plan_monthly_invoices(
    properties: Iterable[Dict[str, Any]],
    existing_invoices: Iterable[Dict[str, Any]] = (),
    period: Optional[str] = None,
    due_day: int = DEFAULT_DUE_DAY
) -> List[PlannedInvoice]:
    """
    Plan one invoice per occupied unit for the period, skipping units already invoiced

    Args:
        properties: Property documents with embedded units
        existing_invoices: Invoices already issued (period, unitId, tenant)
        period: Billing period 'YYYY-MM', defaults to the current month
        due_day: Day of month the invoice falls due
    """
    period = period or period_key(date.today())
    due_date = invoice_due_date(period, due_day)

    already_invoiced = {
        (invoice.get('period'), ref_id(invoice.get('unitId')), ref_id(invoice.get('tenant')))
        for invoice in existing_invoices
    }

    planned: List[PlannedInvoice] = []
    for property_doc in properties:
        for unit in property_doc.get('units') or []:
            if unit.get('status') != 'OCCUPIED' or not unit.get('tenant'):
                continue

            unit_id = ref_id(unit.get('_id'))
            tenant_id = ref_id(unit.get('tenant'))
            if (period, unit_id, tenant_id) in already_invoiced:
                continue

            planned.append(PlannedInvoice(
                property_id=ref_id(property_doc.get('_id')),
                unit_id=unit_id,
                tenant_id=tenant_id,
                amount=float(to_decimal(unit.get('rentAmount') or 0)),
                due_date=due_date,
                period=period,
            ))

    if planned:
        logger.info(f"🧾 Planned {len(planned)} invoices for {period}")
    else:
        logger.info(f"🧾 No invoices to create for {period}")
    return planned
