"""Seed helpers shared by the stock ledger tests."""
from sqlalchemy import select

from stockledger.extensions import db
from stockledger.models import (
    MovementStatus,
    MovementType,
    Product,
    Sale,
    SaleItem,
    SaleStatus,
    StockLevel,
    StockLocation,
    StockMovement,
    StockMovementLine,
)
from stockledger.services.stock_adjustment import adjust, apply_sale


def _id(value):
    return value if isinstance(value, int) else value.id


def make_product(name, sku=None):
    product = Product(name=name, sku=sku)
    db.session.add(product)
    db.session.commit()
    return product


def make_location(name):
    location = StockLocation(name=name)
    db.session.add(location)
    db.session.commit()
    return location


def provision_stock(product, location, quantity=0):
    """Assign a product to a location with an initial on-hand quantity.

    No history row is written, like a level loaded before the ledger existed.
    """
    level = StockLevel(product_id=_id(product), location_id=_id(location), quantity=quantity)
    db.session.add(level)
    db.session.commit()
    return level


def on_hand(product, location):
    return db.session.execute(
        select(StockLevel.quantity).where(
            StockLevel.product_id == _id(product),
            StockLevel.location_id == _id(location),
        )
    ).scalar_one_or_none()


def record_movement(movement_type, location, lines, *, status=MovementStatus.CONFIRMED, apply=True):
    """Store an entry/exit document and, when ``apply``, move the stock through ``adjust``."""
    movement = StockMovement(
        movement_type=movement_type.value,
        status=status.value,
        location_id=_id(location),
    )
    movement.lines = [
        StockMovementLine(product_id=_id(product), quantity=quantity)
        for product, quantity in lines
    ]
    db.session.add(movement)
    db.session.commit()
    movement_id = movement.id

    if apply:
        for product, quantity in lines:
            if movement_type is MovementType.ENTRY:
                adjust(_id(product), _id(location), quantity, operation_type='purchase', operation_id=movement_id)
            else:
                adjust(_id(product), _id(location), -quantity, operation_type='adjustment', operation_id=movement_id)
    return movement_id


def record_sale(location, lines, *, status=SaleStatus.PAID, apply=True):
    """Store a sale and, when ``apply``, consume its stock through ``apply_sale``."""
    sale = Sale(status=status.value, location_id=_id(location))
    sale.items = [SaleItem(product_id=_id(product), quantity=quantity) for product, quantity in lines]
    db.session.add(sale)
    db.session.commit()
    sale_id = sale.id

    if apply:
        result = apply_sale(sale.line_items(), _id(location), sale_id=sale_id)
        assert result.success, result.errors
    return sale_id
