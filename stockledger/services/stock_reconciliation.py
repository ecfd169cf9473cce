"""Stock reconciliation audit.

Synopsis:
Recomputes each product's expected on-hand quantity from its opening
quantity, confirmed entry/exit movements and paid sales, and compares it
with the materialized stock levels.

Glossary:
- Opening quantity: ``quantity_before`` of the product's earliest history row.
- Divergent: actual and expected quantities differ by at least the tolerance.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import (
    MovementStatus,
    MovementType,
    Product,
    Sale,
    SaleItem,
    SaleStatus,
    StockHistory,
    StockLevel,
    StockMovement,
    StockMovementLine,
)

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_DIVERGENT = "divergent"
DEFAULT_TOLERANCE = 0.01


class AuditUnavailableError(RuntimeError):
    """Raised when the data an audit needs cannot be read."""


@dataclass
class AuditRow:
    product_id: int
    product_name: str
    opening_quantity: float
    total_entries: float
    total_exits: float
    total_sales_consumed: float
    expected_quantity: float
    actual_quantity: float
    delta: float
    status: str
    opening_from_history: bool = True

    @property
    def is_divergent(self) -> bool:
        return self.status == STATUS_DIVERGENT

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'opening_quantity': self.opening_quantity,
            'total_entries': self.total_entries,
            'total_exits': self.total_exits,
            'total_sales_consumed': self.total_sales_consumed,
            'expected_quantity': self.expected_quantity,
            'actual_quantity': self.actual_quantity,
            'delta': self.delta,
            'status': self.status,
            'opening_from_history': self.opening_from_history,
        }


@dataclass
class AuditSummary:
    total_products: int = 0
    products_ok: int = 0
    products_divergent: int = 0
    sale_lines_examined: int = 0
    entry_lines_examined: int = 0
    exit_lines_examined: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            'total_products': self.total_products,
            'products_ok': self.products_ok,
            'products_divergent': self.products_divergent,
            'sale_lines_examined': self.sale_lines_examined,
            'entry_lines_examined': self.entry_lines_examined,
            'exit_lines_examined': self.exit_lines_examined,
        }


@dataclass
class AuditReport:
    rows: List[AuditRow] = field(default_factory=list)
    summary: AuditSummary = field(default_factory=AuditSummary)

    @property
    def divergent_rows(self) -> List[AuditRow]:
        return [row for row in self.rows if row.is_divergent]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'data': [row.to_dict() for row in self.rows],
            'summary': self.summary.to_dict(),
        }


def build_audit_row(
    product_id: int,
    product_name: str,
    *,
    actual_quantity: float,
    total_entries: float,
    total_exits: float,
    total_sales_consumed: float,
    opening_quantity: Optional[float],
    tolerance: float = DEFAULT_TOLERANCE,
) -> AuditRow:
    """Reconcile one product.

    Without any history row the opening quantity is reverse-computed from the
    current quantity, which makes the row ``ok`` by construction.
    """
    opening_from_history = opening_quantity is not None
    if not opening_from_history:
        opening_quantity = actual_quantity - total_entries + total_exits + total_sales_consumed

    expected = opening_quantity + total_entries - total_exits - total_sales_consumed
    delta = actual_quantity - expected
    status = STATUS_DIVERGENT if abs(delta) >= tolerance else STATUS_OK

    return AuditRow(
        product_id=product_id,
        product_name=product_name,
        opening_quantity=opening_quantity,
        total_entries=total_entries,
        total_exits=total_exits,
        total_sales_consumed=total_sales_consumed,
        expected_quantity=expected,
        actual_quantity=actual_quantity,
        delta=delta,
        status=status,
        opening_from_history=opening_from_history,
    )


def audit_sort_key(row: AuditRow):
    """Divergent rows first, then by product name."""
    return (0 if row.is_divergent else 1, (row.product_name or "").casefold(), row.product_id)


def run_stock_audit(tolerance: Optional[float] = None) -> AuditReport:
    """Compute the reconciliation report for every product.

    Read-only. Any failure reading the underlying data aborts the whole run
    with ``AuditUnavailableError``.
    """
    if tolerance is None:
        tolerance = current_app.config.get('STOCK_AUDIT_TOLERANCE', DEFAULT_TOLERANCE)

    try:
        snapshot = _load_snapshot()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Stock audit aborted: unable to read ledger data")
        raise AuditUnavailableError("Stock audit data unavailable") from exc

    rows = []
    for product_id, product_name in snapshot['products']:
        entries, _ = snapshot['entries'].get(product_id, (0, 0))
        exits, _ = snapshot['exits'].get(product_id, (0, 0))
        sales, _ = snapshot['sales'].get(product_id, (0, 0))
        rows.append(build_audit_row(
            product_id,
            product_name,
            actual_quantity=snapshot['actual'].get(product_id, 0),
            total_entries=entries,
            total_exits=exits,
            total_sales_consumed=sales,
            opening_quantity=snapshot['opening'].get(product_id),
            tolerance=tolerance,
        ))
    rows.sort(key=audit_sort_key)

    divergent = sum(1 for row in rows if row.is_divergent)
    summary = AuditSummary(
        total_products=len(rows),
        products_ok=len(rows) - divergent,
        products_divergent=divergent,
        sale_lines_examined=sum(count for _, count in snapshot['sales'].values()),
        entry_lines_examined=sum(count for _, count in snapshot['entries'].values()),
        exit_lines_examined=sum(count for _, count in snapshot['exits'].values()),
    )

    logger.info("Stock audit summary: %s", summary.to_dict())
    for row in rows:
        if not row.is_divergent:
            break
        logger.warning(
            "Stock divergence for product %s (%s): expected=%s actual=%s delta=%s",
            row.product_id, row.product_name, row.expected_quantity, row.actual_quantity, row.delta,
        )
    return AuditReport(rows=rows, summary=summary)


def _load_snapshot() -> Dict[str, Any]:
    session = db.session

    products = [
        (row.id, row.name)
        for row in session.execute(select(Product.id, Product.name).order_by(Product.name)).all()
    ]

    actual = {
        product_id: total or 0
        for product_id, total in session.execute(
            select(StockLevel.product_id, func.sum(StockLevel.quantity))
            .group_by(StockLevel.product_id)
        ).all()
    }

    return {
        'products': products,
        'actual': actual,
        'entries': _movement_totals(MovementType.ENTRY),
        'exits': _movement_totals(MovementType.EXIT),
        'sales': _paid_sale_totals(),
        'opening': _opening_quantities(),
    }


def _movement_totals(movement_type: MovementType) -> Dict[int, tuple]:
    rows = db.session.execute(
        select(
            StockMovementLine.product_id,
            func.sum(func.abs(StockMovementLine.quantity)),
            func.count(StockMovementLine.id),
        )
        .join(StockMovement, StockMovement.id == StockMovementLine.movement_id)
        .where(
            StockMovement.movement_type == movement_type.value,
            StockMovement.status == MovementStatus.CONFIRMED.value,
        )
        .group_by(StockMovementLine.product_id)
    ).all()
    return {product_id: (total or 0, count) for product_id, total, count in rows}


def _paid_sale_totals() -> Dict[int, tuple]:
    rows = db.session.execute(
        select(SaleItem.product_id, func.sum(SaleItem.quantity), func.count(SaleItem.id))
        .join(Sale, Sale.id == SaleItem.sale_id)
        .where(Sale.status == SaleStatus.PAID.value)
        .group_by(SaleItem.product_id)
    ).all()
    return {product_id: (total or 0, count) for product_id, total, count in rows}


def _opening_quantities() -> Dict[int, int]:
    ranked = (
        select(
            StockHistory.product_id,
            StockHistory.quantity_before,
            func.row_number().over(
                partition_by=StockHistory.product_id,
                order_by=(StockHistory.created_at.asc(), StockHistory.id.asc()),
            ).label('position'),
        )
        .subquery()
    )
    rows = db.session.execute(
        select(ranked.c.product_id, ranked.c.quantity_before).where(ranked.c.position == 1)
    ).all()
    return {product_id: quantity_before for product_id, quantity_before in rows}
