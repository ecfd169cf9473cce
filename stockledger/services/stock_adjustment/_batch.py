"""
Best-effort batch operations for sales.

Each line is adjusted independently: a failing line is reported and the
batch moves on. Nothing applied is rolled back; the caller decides whether
to compensate based on the per-item report.
"""

import logging
import threading
import time
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ...extensions import db
from ...models import Product
from ._core import adjust
from ._errors import PersistenceError, StockLedgerError
from ._types import StockOperationResult, read_field

logger = logging.getLogger(__name__)

_USE_CONFIG = object()
MISSING_PRODUCT_NAME = "Unknown product"


def apply_sale(
    items: Iterable,
    location_id: int,
    *,
    sale_id: Optional[int] = None,
    user_id: Optional[int] = None,
    timeout=_USE_CONFIG,
    cancel_event: Optional[threading.Event] = None,
) -> StockOperationResult:
    """Consume stock for every sale line at ``location_id``."""
    return _run_batch(
        _lines_to_changes(items, sign=-1),
        location_id,
        operation_type='sale',
        operation_id=sale_id,
        user_id=user_id,
        reason=f"Sale #{sale_id}" if sale_id else "Sale",
        timeout=timeout,
        cancel_event=cancel_event,
    )


def revert_sale(
    items: Iterable,
    location_id: int,
    *,
    sale_id: Optional[int] = None,
    user_id: Optional[int] = None,
    timeout=_USE_CONFIG,
    cancel_event: Optional[threading.Event] = None,
) -> StockOperationResult:
    """Return stock for every line of a cancelled or deleted sale."""
    return _run_batch(
        _lines_to_changes(items, sign=1),
        location_id,
        operation_type='reversal',
        operation_id=sale_id,
        user_id=user_id,
        reason=f"Sale #{sale_id} reversal" if sale_id else "Sale reversal",
        timeout=timeout,
        cancel_event=cancel_event,
    )


def apply_deltas(
    deltas: Iterable,
    location_id: int,
    *,
    sale_id: Optional[int] = None,
    user_id: Optional[int] = None,
    timeout=_USE_CONFIG,
    cancel_event: Optional[threading.Event] = None,
) -> StockOperationResult:
    """Apply signed per-product changes computed by ``calculate_stock_delta``."""
    changes = []
    for delta in deltas or ():
        product_id = read_field(delta, 'product_id')
        quantity_change = read_field(delta, 'quantity_change')
        changes.append((product_id, lambda value=quantity_change: value))
    return _run_batch(
        changes,
        location_id,
        operation_type='adjustment',
        operation_id=sale_id,
        user_id=user_id,
        reason=f"Sale #{sale_id} update" if sale_id else "Sale update",
        timeout=timeout,
        cancel_event=cancel_event,
    )


def validate_line_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValueError(f"Quantity must be an integer, got {quantity!r}")
    if quantity <= 0:
        raise ValueError(f"Quantity must be positive, got {quantity}")
    return quantity


def _lines_to_changes(items, *, sign: int) -> List[Tuple[int, Callable[[], int]]]:
    changes = []
    for item in items or ():
        product_id = read_field(item, 'product_id')
        quantity = read_field(item, 'quantity')
        changes.append((product_id, lambda value=quantity: sign * validate_line_quantity(value)))
    return changes


def resolve_product_names(product_ids) -> dict:
    ids = {pid for pid in product_ids if pid is not None}
    if not ids:
        return {}
    try:
        rows = db.session.execute(
            select(Product.id, Product.name).where(Product.id.in_(ids))
        ).all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Unable to resolve product names for stock batch")
        raise PersistenceError("Stock store unavailable: cannot resolve products") from exc
    return {row.id: row.name for row in rows}


def _batch_deadline(timeout):
    if timeout is _USE_CONFIG:
        timeout = current_app.config.get('STOCK_BATCH_TIMEOUT_SECONDS')
    if timeout is None:
        return None
    return time.monotonic() + float(timeout)


def _interruption_reason(deadline, cancel_event) -> Optional[str]:
    if cancel_event is not None and cancel_event.is_set():
        return "cancelled"
    if deadline is not None and time.monotonic() >= deadline:
        return "timed out"
    return None


def _run_batch(
    changes: Sequence[Tuple[int, Callable[[], int]]],
    location_id: int,
    *,
    operation_type: str,
    operation_id,
    user_id,
    reason: str,
    timeout,
    cancel_event,
) -> StockOperationResult:
    deadline = _batch_deadline(timeout)
    names = resolve_product_names(product_id for product_id, _ in changes)
    result = StockOperationResult()

    for index, (product_id, change_for) in enumerate(changes):
        interrupted = _interruption_reason(deadline, cancel_event)
        if interrupted:
            skipped = [pid for pid, _ in changes[index:]]
            result.record_interruption(interrupted, index, len(changes), skipped)
            logger.warning(
                "Stock batch %s %s after %s of %s items at location %s",
                operation_type, interrupted, index, len(changes), location_id,
            )
            break

        if product_id is None:
            result.record_failure(None, MISSING_PRODUCT_NAME, "Stock line has no product_id")
            continue

        product_name = names.get(product_id) or f"Product {product_id}"
        try:
            outcome = adjust(
                product_id,
                location_id,
                change_for(),
                operation_type=operation_type,
                operation_id=operation_id,
                user_id=user_id,
                reason=reason,
            )
        except (StockLedgerError, ValueError) as exc:
            result.record_failure(product_id, product_name, str(exc))
        else:
            result.record_success(product_id, product_name, outcome.old_quantity, outcome.new_quantity)

    if not result.success:
        logger.warning(
            "Stock batch %s at location %s finished with %s error(s): %s",
            operation_type, location_id, len(result.errors), "; ".join(result.errors),
        )
    return result
