"""
Rent Event Channel
Publish/subscribe channel for payment status and lease lifecycle notifications
"""

from collections import defaultdict
from dataclasses import replace
from functools import partial
from typing import Any, Callable, Dict, List, Optional
import logging

from rent_application.rent_accounting.core.models import LeaseStatus, ref_id
from rent_application.rent_accounting.core.occupancy import OccupancyResult

logger = logging.getLogger(__name__)

PAYMENT_STATUS_UPDATED = 'payment_status_updated'
LEASE_ENDED = 'lease_ended'
RENT_EVENTS = (PAYMENT_STATUS_UPDATED, LEASE_ENDED)

EventHandler = Callable[[Dict[str, Any]], None]


class RentEventBus:
    """
    In-process event channel, injected into whatever needs to react to rent events
    """

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        self._handlers[event_name].append(handler)

    def unsubscribe(self, event_name: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_name, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event_name: str, detail: Optional[Dict[str, Any]] = None) -> int:
        """
        Deliver an event to every subscriber
        Returns the number of handlers that ran without raising
        """
        detail = detail or {}
        delivered = 0
        for handler in list(self._handlers.get(event_name, [])):
            try:
                handler(detail)
                delivered += 1
            except Exception as e:
                logger.error(f"❌ Handler {handler!r} failed for event {event_name}: {e}", exc_info=True)
        logger.debug(f"📣 {event_name} delivered to {delivered} handler(s)")
        return delivered


class RentEventLog:
    """
    Audit listener: logs every rent event and keeps the most recent ones
    """

    def __init__(self, bus: RentEventBus, max_entries: int = 100):
        self.bus = bus
        self.max_entries = max_entries
        self.entries: List[Dict[str, Any]] = []
        self._handlers = {name: partial(self._record, name) for name in RENT_EVENTS}
        for name, handler in self._handlers.items():
            bus.subscribe(name, handler)

    def close(self) -> None:
        for name, handler in self._handlers.items():
            self.bus.unsubscribe(name, handler)

    def _record(self, event_name: str, detail: Dict[str, Any]) -> None:
        logger.info(f"📝 Rent event {event_name}: {detail}")
        self.entries.append({'event': event_name, 'detail': dict(detail)})
        del self.entries[:-self.max_entries]


class TenantOccupancyBoard:
    """
    Latest occupancy view of one tenant, kept in step with rent events

    Args:
        tenant_id: Tenant whose units are tracked
        loader: Callable returning a fresh OccupancyResult
        bus: Event channel to listen on
    """

    def __init__(self, tenant_id: str, loader: Callable[[], OccupancyResult], bus: RentEventBus):
        self.tenant_id = str(tenant_id)
        self.loader = loader
        self.bus = bus
        self.result = loader()

        bus.subscribe(PAYMENT_STATUS_UPDATED, self._on_payment_status_updated)
        bus.subscribe(LEASE_ENDED, self._on_lease_ended)

    def close(self) -> None:
        self.bus.unsubscribe(PAYMENT_STATUS_UPDATED, self._on_payment_status_updated)
        self.bus.unsubscribe(LEASE_ENDED, self._on_lease_ended)

    def _on_payment_status_updated(self, detail: Dict[str, Any]) -> None:
        logger.info(f"🔄 Payment status changed, reloading occupancy for tenant {self.tenant_id}")
        self.result = self.loader()

    def _on_lease_ended(self, detail: Dict[str, Any]) -> None:
        if ref_id(detail.get('tenantId')) != self.tenant_id:
            return

        unit_id = ref_id(detail.get('unitId'))
        ended = next((item for item in self.result.current if item.unit_id == unit_id), None)
        if ended is None:
            return

        lease = replace(ended.lease, status=LeaseStatus.ENDED.value) if ended.lease else None
        self.result.current = [item for item in self.result.current if item is not ended]
        self.result.previous = self.result.previous + [replace(ended, lease=lease, rent_schedule=[])]
        logger.info(f"📦 Unit {unit_id} moved to previous units for tenant {self.tenant_id}")
