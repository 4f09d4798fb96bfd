"""
Tenant Occupancy Classification
Splits a tenant's units into current and previous occupancy and collects ended lease history
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence
import logging

from rent_application.rent_accounting.core.models import (
    ENDED_LEASE_STATUSES,
    Lease,
    Payment,
    ScheduleEntry,
    ref_id,
)
from rent_application.rent_accounting.schedule.generator import RentScheduleEngine

logger = logging.getLogger(__name__)


class PropertyLookupError(Exception):
    """Raised by a property lookup when a property cannot be fetched"""


PropertyLookup = Callable[[str], Dict[str, Any]]


def is_lease_ended(lease: Lease, today: Optional[date] = None) -> bool:
    """
    A lease is ended when its status says so; otherwise when its end date has passed
    """
    if lease.status in ENDED_LEASE_STATUSES:
        return True
    today = today or date.today()
    return lease.lease_end_date < today


def select_lease_for_unit(leases: Iterable[Lease], unit_id: Optional[str]) -> Optional[Lease]:
    """
    Pick the lease that describes a unit's occupancy: the most recent by
    leaseStartDate. Ties keep the lease that appears first.
    """
    if unit_id is None:
        return None

    selected = None
    for lease in leases:
        if lease.unit_id != str(unit_id):
            continue
        if selected is None or lease.lease_start_date > selected.lease_start_date:
            selected = lease
    return selected


def find_unit(property_doc: Optional[Dict[str, Any]], unit_id: Optional[str]) -> Optional[Dict[str, Any]]:
    if not isinstance(property_doc, dict) or unit_id is None:
        return None
    units = property_doc.get('units') or []
    if not isinstance(units, list):
        return None
    for unit in units:
        if isinstance(unit, dict) and ref_id(unit.get('_id')) == str(unit_id):
            return unit
    return None


@dataclass
class UnitOccupancy:
    """A unit, its property and the lease that governs it"""
    unit_id: Optional[str]
    unit: Optional[Dict[str, Any]] = None
    property: Optional[Dict[str, Any]] = None
    lease: Optional[Lease] = None
    rent_schedule: List[ScheduleEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'unitId': self.unit_id,
            'unit': self.unit,
            'property': self.property,
            'lease': self.lease.to_dict() if self.lease else None,
            'rentSchedule': [entry.to_dict() for entry in self.rent_schedule],
        }


@dataclass
class OccupancyResult:
    current: List[UnitOccupancy] = field(default_factory=list)
    previous: List[UnitOccupancy] = field(default_factory=list)
    all_history: List[UnitOccupancy] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'current': [item.to_dict() for item in self.current],
            'previous': [item.to_dict() for item in self.previous],
            'allHistory': [item.to_dict() for item in self.all_history],
        }


class OccupancyClassifier:
    """
    Classify a tenant's units into current / previous occupancy

    The property lookup is only used for ended leases (history), one call per
    distinct property. Lookup failures drop the affected history entries.
    """

    def __init__(
        self,
        property_lookup: PropertyLookup,
        engine: Optional[RentScheduleEngine] = None,
        today: Optional[date] = None
    ):
        self.property_lookup = property_lookup
        self.engine = engine or RentScheduleEngine()
        self.today = today

    def classify(
        self,
        tenant_id: str,
        leases: Iterable[Lease],
        payments: Sequence[Payment],
        properties: Iterable[Dict[str, Any]] = ()
    ) -> OccupancyResult:
        today = self.today or date.today()
        tenant_id = str(tenant_id)
        tenant_leases = [lease for lease in leases if lease.tenant_id == tenant_id]

        logger.info(f"🏠 Classifying occupancy for tenant {tenant_id}: {len(tenant_leases)} lease(s)")

        result = OccupancyResult()
        for unit_id, unit, property_doc in self._tenant_units(tenant_id, tenant_leases, properties):
            lease = select_lease_for_unit(tenant_leases, unit_id)
            occupancy = UnitOccupancy(unit_id=unit_id, unit=unit, property=property_doc, lease=lease)

            if lease is not None and is_lease_ended(lease, today):
                result.previous.append(occupancy)
            else:
                # No lease yet still counts as a current unit, with an empty schedule
                occupancy.rent_schedule = self.engine.generate_schedule(
                    lease, payments, unit_id=unit_id, today=today
                )
                result.current.append(occupancy)

        result.all_history = self._ended_lease_history(tenant_leases, today)

        logger.info(
            f"✅ Tenant {tenant_id}: {len(result.current)} current, {len(result.previous)} previous, "
            f"{len(result.all_history)} history entries"
        )
        return result

    def _tenant_units(self, tenant_id, tenant_leases, properties):
        """Units assigned to the tenant, then units only known through their leases"""
        seen = set()

        for property_doc in properties:
            for unit in property_doc.get('units') or []:
                if ref_id(unit.get('tenant')) != tenant_id:
                    continue
                unit_id = ref_id(unit.get('_id'))
                if unit_id in seen:
                    continue
                seen.add(unit_id)
                yield unit_id, unit, property_doc

        for lease in tenant_leases:
            if lease.unit_id is None or lease.unit_id in seen:
                continue
            seen.add(lease.unit_id)
            yield lease.unit_id, None, None

    def _ended_lease_history(self, tenant_leases: List[Lease], today: date) -> List[UnitOccupancy]:
        history: List[UnitOccupancy] = []
        fetched: Dict[str, Optional[Dict[str, Any]]] = {}

        for lease in tenant_leases:
            if not is_lease_ended(lease, today):
                continue
            if lease.property_id is None:
                logger.warning(f"⚠️  Lease {lease.lease_id} has no property reference, left out of history")
                continue

            if lease.property_id not in fetched:
                fetched[lease.property_id] = self._fetch_property(lease.property_id)
            property_doc = fetched[lease.property_id]

            unit = find_unit(property_doc, lease.unit_id)
            if unit is None:
                continue

            history.append(UnitOccupancy(
                unit_id=lease.unit_id,
                unit=unit,
                property=property_doc,
                lease=lease,
            ))

        return history

    def _fetch_property(self, property_id: str) -> Optional[Dict[str, Any]]:
        try:
            return self.property_lookup(property_id)
        except PropertyLookupError as e:
            logger.error(f"❌ Error loading property {property_id} for lease history: {e}")
            return None
