"""
Lease history and lease maintenance helpers
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Optional
import logging

from rent_application.rent_accounting.core.models import Lease, LeaseStatus, ref_id

logger = logging.getLogger(__name__)


def lease_history_for_unit(leases: Iterable[Lease], unit_id: str) -> List[Lease]:
    """All leases of a unit, most recent start date first"""
    unit_leases = [lease for lease in leases if lease.unit_id == str(unit_id)]
    return sorted(unit_leases, key=lambda lease: lease.lease_start_date, reverse=True)


@dataclass
class LeaseTermination:
    """A lease that should be marked TERMINATED"""
    lease: Lease
    unit_id: str
    property_id: Optional[str]
    terminated_date: date

    def to_dict(self) -> dict:
        return {
            'leaseId': self.lease.lease_id,
            'unitId': self.unit_id,
            'propertyId': self.property_id,
            'status': LeaseStatus.TERMINATED.value,
            'terminatedDate': self.terminated_date.isoformat(),
        }


def find_leases_to_terminate(
    properties: Iterable[Dict[str, Any]],
    leases: Iterable[Lease],
    today: Optional[date] = None
) -> List[LeaseTermination]:
    """
    Find ACTIVE leases whose unit is already AVAILABLE again
    These were left behind by move-outs and should be terminated as of today
    """
    today = today or date.today()
    leases = list(leases)
    terminations: List[LeaseTermination] = []

    for property_doc in properties:
        property_id = ref_id(property_doc.get('_id'))
        for unit in property_doc.get('units') or []:
            if unit.get('status') != 'AVAILABLE':
                continue

            unit_id = ref_id(unit.get('_id'))
            for lease in leases:
                if lease.unit_id == unit_id and lease.status == LeaseStatus.ACTIVE:
                    terminations.append(LeaseTermination(
                        lease=lease,
                        unit_id=unit_id,
                        property_id=property_id,
                        terminated_date=today,
                    ))

    logger.info(f"📋 Found {len(terminations)} active lease(s) on available units")
    return terminations
