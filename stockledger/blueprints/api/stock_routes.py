import logging

from flask import request

from ...authz import INVENTORY_VIEW, permission_required
from ...services.stock_adjustment import (
    get_recent_stock_movements,
    get_stock_history,
    validate_line_quantity,
    validate_stock_availability,
)
from ...services.stock_reconciliation import run_stock_audit
from ...utils.api_responses import APIResponse
from . import stock_api_bp

logger = logging.getLogger(__name__)


def _optional_int_arg(name):
    raw = request.args.get(name)
    if raw in (None, ""):
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive")
    return value


def _is_valid_line(item) -> bool:
    if not isinstance(item, dict):
        return False
    product_id = item.get('product_id')
    if isinstance(product_id, bool) or not isinstance(product_id, int):
        return False
    try:
        validate_line_quantity(item.get('quantity'))
    except ValueError:
        return False
    return True


@stock_api_bp.route('/audit', methods=['GET'])
@permission_required(INVENTORY_VIEW)
def stock_audit():
    """Reconciliation report: divergent products first, then by name."""
    report = run_stock_audit()
    if request.args.get('divergent_only', '').lower() in ('1', 'true', 'yes'):
        rows = report.divergent_rows
    else:
        rows = report.rows
    return APIResponse.success(
        [row.to_dict() for row in rows],
        message="Stock audit complete",
        summary=report.summary.to_dict(),
    )


@stock_api_bp.route('/history/<int:product_id>', methods=['GET'])
@permission_required(INVENTORY_VIEW)
def stock_history(product_id):
    try:
        location_id = _optional_int_arg('location_id')
        limit = _optional_int_arg('limit')
    except ValueError as e:
        return APIResponse.validation_error({'query': [str(e)]})

    history = get_stock_history(product_id, location_id=location_id, limit=limit)
    if history['product'] is None:
        return APIResponse.not_found("Product")
    return APIResponse.success(history)


@stock_api_bp.route('/movements/recent', methods=['GET'])
@permission_required(INVENTORY_VIEW)
def recent_stock_movements():
    try:
        limit = _optional_int_arg('limit')
    except ValueError as e:
        return APIResponse.validation_error({'query': [str(e)]})
    return APIResponse.success(get_recent_stock_movements(limit=limit))


@stock_api_bp.route('/availability', methods=['POST'])
@permission_required(INVENTORY_VIEW)
def stock_availability():
    """Advisory check of sale lines against on-hand stock at a location."""
    data = request.get_json(silent=True) or {}
    items = data.get('items')
    location_id = data.get('location_id')

    errors = {}
    if not isinstance(items, list) or not items:
        errors['items'] = ['items must be a non-empty list']
    elif not all(_is_valid_line(item) for item in items):
        errors['items'] = ['each item needs an integer product_id and a positive integer quantity']
    if not isinstance(location_id, int) or isinstance(location_id, bool):
        errors['location_id'] = ['location_id must be an integer']
    if errors:
        return APIResponse.validation_error(errors)

    report = validate_stock_availability(items, location_id)
    return APIResponse.success(report.to_dict())
