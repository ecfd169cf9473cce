"""
Read access to the append-only stock history.
"""

import logging

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from ...extensions import db
from ...models import Product, StockHistory
from ._errors import PersistenceError

logger = logging.getLogger(__name__)


def _resolve_limit(limit, config_key, fallback):
    if limit is None:
        limit = current_app.config.get(config_key, fallback)
    limit = int(limit)
    if limit <= 0:
        raise ValueError("limit must be positive")
    return limit


def get_stock_history(product_id: int, location_id: int | None = None, limit: int | None = None) -> dict:
    """Oldest-first history of one product, optionally at one location."""
    limit = _resolve_limit(limit, 'STOCK_HISTORY_DEFAULT_LIMIT', 50)
    stmt = (
        select(StockHistory)
        .options(joinedload(StockHistory.location), joinedload(StockHistory.product))
        .where(StockHistory.product_id == product_id)
        .order_by(StockHistory.created_at.asc(), StockHistory.id.asc())
        .limit(limit)
    )
    if location_id is not None:
        stmt = stmt.where(StockHistory.location_id == location_id)

    try:
        product = db.session.get(Product, product_id)
        rows = db.session.execute(stmt).scalars().all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to load stock history for product %s", product_id)
        raise PersistenceError("Stock history unavailable") from exc

    return {
        'product': {'id': product.id, 'name': product.name, 'sku': product.sku} if product else None,
        'history': [row.to_dict() for row in rows],
        'total_changes': len(rows),
    }


def get_recent_stock_movements(limit: int | None = None) -> list:
    """Newest-first history rows across all products and locations."""
    limit = _resolve_limit(limit, 'STOCK_RECENT_MOVEMENTS_LIMIT', 100)
    try:
        rows = db.session.execute(
            select(StockHistory)
            .options(joinedload(StockHistory.location), joinedload(StockHistory.product))
            .order_by(StockHistory.created_at.desc(), StockHistory.id.desc())
            .limit(limit)
        ).scalars().all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Failed to load recent stock movements")
        raise PersistenceError("Stock history unavailable") from exc
    return [row.to_dict() for row in rows]
