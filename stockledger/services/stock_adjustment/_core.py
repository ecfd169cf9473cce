import logging

from flask import current_app
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from ...extensions import db
from ...models import OPERATION_TYPES, StockHistory, StockLevel
from ...utils.timezone_utils import TimezoneUtils
from ._errors import InsufficientStockError, NotConfiguredError, PersistenceError
from ._retry import with_lock_retry
from ._types import AdjustmentResult

logger = logging.getLogger(__name__)


def validate_quantity_change(quantity_change) -> int:
    if isinstance(quantity_change, bool) or not isinstance(quantity_change, int):
        raise ValueError(f"Quantity change must be an integer, got {quantity_change!r}")
    if quantity_change == 0:
        raise ValueError("Quantity change must be non-zero")
    return quantity_change


def adjust(
    product_id: int,
    location_id: int,
    quantity_change: int,
    *,
    operation_type: str = 'adjustment',
    operation_id: int | None = None,
    user_id: int | None = None,
    reason: str | None = None,
) -> AdjustmentResult:
    """
    Canonical entry point for ALL stock quantity changes.

    The read-modify-write happens inside one conditional UPDATE, so two
    concurrent callers on the same (product, location) can never both read
    the same old quantity. The matching history row is written in the same
    transaction. Lock conflicts are retried with backoff.

    Raises NotConfiguredError, InsufficientStockError or PersistenceError;
    on any failure the stock row is left untouched.
    """
    validate_quantity_change(quantity_change)
    if operation_type not in OPERATION_TYPES:
        raise ValueError(f"Unknown operation type: {operation_type}")

    config = current_app.config

    def _attempt():
        return _adjust_once(
            product_id, location_id, quantity_change,
            operation_type=operation_type,
            operation_id=operation_id,
            user_id=user_id,
            reason=reason,
        )

    try:
        result = with_lock_retry(
            _attempt,
            max_attempts=config.get('STOCK_LOCK_RETRY_ATTEMPTS', 5),
            initial_delay=config.get('STOCK_LOCK_RETRY_INITIAL_DELAY', 0.05),
            max_delay=config.get('STOCK_LOCK_RETRY_MAX_DELAY', 2.0),
        )
    except InsufficientStockError as exc:
        logger.warning(
            "STOCK ADJUSTMENT REFUSED: product=%s location=%s on_hand=%s change=%s",
            product_id, location_id, exc.old_quantity, quantity_change,
        )
        raise
    except NotConfiguredError:
        logger.warning("STOCK ADJUSTMENT REFUSED: no stock row for product=%s location=%s", product_id, location_id)
        raise
    except SQLAlchemyError as exc:
        logger.exception("Stock adjustment failed for product=%s location=%s", product_id, location_id)
        raise PersistenceError(f"Stock store unavailable: {exc.__class__.__name__}") from exc

    logger.info(
        "STOCK ADJUSTMENT: product=%s location=%s %s -> %s (%+d, %s)",
        product_id, location_id, result.old_quantity, result.new_quantity, quantity_change, operation_type,
    )
    return result


def _stock_row_filter(product_id, location_id):
    return (
        StockLevel.product_id == product_id,
        StockLevel.location_id == location_id,
    )


def _adjust_once(product_id, location_id, quantity_change, *, operation_type, operation_id, user_id, reason):
    """One transaction: guarded update, read back, history append, commit."""
    session = db.session
    try:
        updated = session.execute(
            update(StockLevel)
            .where(
                *_stock_row_filter(product_id, location_id),
                StockLevel.quantity + quantity_change >= 0,
            )
            .values(
                quantity=StockLevel.quantity + quantity_change,
                updated_at=TimezoneUtils.utc_now(),
            )
            .execution_options(synchronize_session=False)
        )

        if updated.rowcount != 1:
            current = session.execute(
                select(StockLevel.quantity).where(*_stock_row_filter(product_id, location_id))
            ).scalar_one_or_none()
            session.rollback()
            if current is None:
                raise NotConfiguredError(product_id, location_id)
            raise InsufficientStockError(product_id, location_id, current, current + quantity_change)

        # The row stays locked by this transaction until commit.
        new_quantity = session.execute(
            select(StockLevel.quantity).where(*_stock_row_filter(product_id, location_id))
        ).scalar_one()
        old_quantity = new_quantity - quantity_change

        history = StockHistory(
            product_id=product_id,
            location_id=location_id,
            quantity_before=old_quantity,
            quantity_after=new_quantity,
            quantity_change=quantity_change,
            operation_type=operation_type,
            operation_id=operation_id,
            user_id=user_id,
            reason=reason,
        )
        session.add(history)
        session.flush()
        history_id = history.id
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise

    return AdjustmentResult(
        product_id=product_id,
        location_id=location_id,
        old_quantity=old_quantity,
        new_quantity=new_quantity,
        history_id=history_id,
    )
