import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ...extensions import db
from ...models import Product, StockLevel
from ._errors import PersistenceError
from ._types import read_field

logger = logging.getLogger(__name__)


@dataclass
class InsufficientLine:
    product_id: int
    product_name: str
    available: int
    requested: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'available': self.available,
            'requested': self.requested,
        }


@dataclass
class AvailabilityReport:
    insufficient: List[InsufficientLine] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.insufficient

    def to_dict(self) -> Dict[str, Any]:
        return {
            'valid': self.valid,
            'insufficient': [line.to_dict() for line in self.insufficient],
        }


def validate_stock_availability(items: Iterable, location_id: int) -> AvailabilityReport:
    """Advisory pre-check of sale lines against on-hand stock.

    Lines for the same product are summed. A product without a stock row at
    the location counts as zero available. ``adjust`` remains the authority:
    stock can change between this check and the sale.
    """
    requested = {}
    for item in items or ():
        product_id = read_field(item, 'product_id')
        requested[product_id] = requested.get(product_id, 0) + (read_field(item, 'quantity') or 0)

    if not requested:
        return AvailabilityReport()

    try:
        rows = db.session.execute(
            select(Product.id, Product.name, StockLevel.quantity)
            .outerjoin(
                StockLevel,
                (StockLevel.product_id == Product.id) & (StockLevel.location_id == location_id),
            )
            .where(Product.id.in_(list(requested)))
        ).all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Stock availability check failed at location %s", location_id)
        raise PersistenceError("Stock store unavailable") from exc

    on_hand = {row.id: (row.name, row.quantity or 0) for row in rows}
    report = AvailabilityReport()
    for product_id, quantity in requested.items():
        name, available = on_hand.get(product_id, (None, 0))
        if available < quantity:
            report.insufficient.append(InsufficientLine(
                product_id=product_id,
                product_name=name or f"Product {product_id}",
                available=available,
                requested=quantity,
            ))
    return report
