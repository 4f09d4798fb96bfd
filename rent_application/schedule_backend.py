"""
Rent Schedule Backend API
Stateless endpoints: the caller posts the lease / payment / property documents
it already fetched from the property backend and gets derived views back
"""

from flask import Blueprint, request, jsonify, current_app
from datetime import date
from functools import wraps
from typing import Optional
import logging

from rent_application.rent_accounting.core.models import Lease, Payment, StatusPolicy
from rent_application.rent_accounting.core.occupancy import OccupancyClassifier
from rent_application.rent_accounting.core.events import RENT_EVENTS
from rent_application.rent_accounting.core.lease_history import find_leases_to_terminate, lease_history_for_unit
from rent_application.rent_accounting.core.reports import DueRentFilters, build_due_rent_report
from rent_application.rent_accounting.schedule.generator import RentScheduleEngine
from rent_application.rent_accounting.utils.date_utils import parse_date
from rent_application.rent_accounting.utils.invoice_planner import plan_monthly_invoices
from rent_application.rent_accounting.utils.rent_stats import calculate_tenant_rent_stats
from rent_application.property_client import PayloadPropertyLookup, PropertyClient

# Create blueprint
schedule_bp = Blueprint('schedule', __name__, url_prefix='/api')

logger = logging.getLogger(__name__)


class BadRequest(ValueError):
    """Malformed request body"""


def json_endpoint(f):
    """
    Parse the JSON body and map errors to responses
    Validation problems (InvalidLeaseError, InvalidDateError and other
    ValueErrors) give 400, anything else 500
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            logger.warning(f"❌ {request.path}: request body is not a JSON object")
            return jsonify({'error': 'Request body must be a JSON object'}), 400
        try:
            return f(data, *args, **kwargs)
        except ValueError as e:
            logger.warning(f"⚠️  {request.path}: {e}")
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            logger.error(f"❌ Error in {request.path}: {e}", exc_info=True)
            return jsonify({'error': str(e)}), 500
    return decorated_function


def _today(data: dict) -> date:
    return parse_date(data.get('today')) or date.today()


def _status_policy(data: dict) -> StatusPolicy:
    value = data.get('statusPolicy') or current_app.config['RENT_STATUS_POLICY']
    try:
        return StatusPolicy(value)
    except ValueError:
        allowed = ', '.join(policy.value for policy in StatusPolicy)
        raise BadRequest(f"Unknown statusPolicy {value!r}, expected one of: {allowed}")


def _list_field(data: dict, name: str, required: bool = False) -> list:
    value = data.get(name)
    if value is None:
        if required:
            raise BadRequest(f"'{name}' is required")
        return []
    if not isinstance(value, list):
        raise BadRequest(f"'{name}' must be a list")
    return value


def _engine(data: dict) -> RentScheduleEngine:
    return RentScheduleEngine(
        status_policy=_status_policy(data),
        max_months=current_app.config['SCHEDULE_MAX_MONTHS'],
    )


def _parse_lease(payload: Optional[dict]) -> Optional[Lease]:
    return Lease.from_dict(payload) if payload else None


@schedule_bp.route('/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok'})


@schedule_bp.route('/rent_schedule', methods=['POST'])
@json_endpoint
def rent_schedule(data):
    """
    Month-by-month rent schedule of one lease
    Body: {lease, payments, unitId?, today?, statusPolicy?}
    """
    lease = _parse_lease(data.get('lease'))
    payments = [Payment.from_dict(p) for p in _list_field(data, 'payments')]
    unit_id = data.get('unitId')
    today = _today(data)
    engine = _engine(data)

    logger.info(f"📥 Rent schedule request: lease={lease.lease_id if lease else None}, "
                f"payments={len(payments)}, unitId={unit_id}, policy={engine.status_policy.value}")

    schedule = engine.generate_schedule(lease, payments, unit_id=unit_id, today=today)

    return jsonify({
        'success': True,
        'statusPolicy': engine.status_policy.value,
        'today': today.isoformat(),
        'schedule': [entry.to_dict() for entry in schedule],
    })


@schedule_bp.route('/occupancy', methods=['POST'])
@json_endpoint
def occupancy(data):
    """
    Current / previous units and ended lease history of a tenant
    Body: {tenantId, leases, payments, properties?, today?, statusPolicy?}
    """
    tenant_id = data.get('tenantId')
    if tenant_id in (None, ''):
        raise BadRequest("'tenantId' is required")

    leases = [Lease.from_dict(lease) for lease in _list_field(data, 'leases', required=True)]
    payments = [Payment.from_dict(p) for p in _list_field(data, 'payments')]
    properties = _list_field(data, 'properties')

    lookup = PayloadPropertyLookup(properties, fallback=PropertyClient.from_config(current_app.config))
    classifier = OccupancyClassifier(lookup, engine=_engine(data), today=_today(data))
    result = classifier.classify(tenant_id, leases, payments, properties)

    response = result.to_dict()
    response['success'] = True
    return jsonify(response)


@schedule_bp.route('/rent_stats', methods=['POST'])
@json_endpoint
def rent_stats(data):
    """Body: {properties, payments, today?}"""
    properties = _list_field(data, 'properties', required=True)
    payments = [Payment.from_dict(p) for p in _list_field(data, 'payments')]
    return jsonify(calculate_tenant_rent_stats(properties, payments, today=_today(data)))


@schedule_bp.route('/invoices/plan', methods=['POST'])
@json_endpoint
def plan_invoices(data):
    """Body: {properties, invoices?, period?}"""
    planned = plan_monthly_invoices(
        _list_field(data, 'properties', required=True),
        _list_field(data, 'invoices'),
        period=data.get('period'),
        due_day=current_app.config['INVOICE_DUE_DAY'],
    )
    return jsonify({
        'success': True,
        'count': len(planned),
        'invoices': [invoice.to_dict() for invoice in planned],
    })


@schedule_bp.route('/leases/history', methods=['POST'])
@json_endpoint
def lease_history(data):
    """Body: {leases, unitId}"""
    unit_id = data.get('unitId')
    if unit_id in (None, ''):
        raise BadRequest("'unitId' is required")

    leases = [Lease.from_dict(lease) for lease in _list_field(data, 'leases', required=True)]
    return jsonify([lease.to_dict() for lease in lease_history_for_unit(leases, unit_id)])


@schedule_bp.route('/leases/terminations', methods=['POST'])
@json_endpoint
def lease_terminations(data):
    """Body: {properties, leases, today?}"""
    leases = [Lease.from_dict(lease) for lease in _list_field(data, 'leases', required=True)]
    terminations = find_leases_to_terminate(
        _list_field(data, 'properties', required=True), leases, today=_today(data)
    )
    return jsonify({
        'count': len(terminations),
        'terminations': [t.to_dict() for t in terminations],
    })


@schedule_bp.route('/reports/due_rent', methods=['POST'])
@json_endpoint
def due_rent_report(data):
    """Body: {payments, filters?}"""
    payments = [Payment.from_dict(p) for p in _list_field(data, 'payments', required=True)]
    return jsonify(build_due_rent_report(payments, DueRentFilters.from_dict(data.get('filters'))))


@schedule_bp.route('/events/<event_name>', methods=['POST'])
@json_endpoint
def publish_event(data, event_name):
    """
    Publish a rent event to in-process listeners
    Body: event detail, e.g. {tenantId, unitId} for lease_ended
    """
    if event_name not in RENT_EVENTS:
        return jsonify({'error': f"Unknown event {event_name!r}"}), 404

    delivered = current_app.extensions['rent_events'].publish(event_name, data)
    return jsonify({'event': event_name, 'delivered': delivered})
