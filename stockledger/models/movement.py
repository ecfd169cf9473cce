import enum

from ..extensions import db
from ..utils.timezone_utils import TimezoneUtils


class MovementType(str, enum.Enum):
    ENTRY = "entry"
    EXIT = "exit"


class MovementStatus(str, enum.Enum):
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class StockMovement(db.Model):
    """Stock received (entry) or removed (exit) outside of a sale.

    Written by the movement recording workflow; read here by the audit.
    """
    __tablename__ = 'stock_movement'

    id = db.Column(db.Integer, primary_key=True)
    movement_type = db.Column(db.String(16), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default=MovementStatus.DRAFT.value, index=True)
    location_id = db.Column(db.Integer, db.ForeignKey('stock_location.id'), nullable=False)
    reference = db.Column(db.String(128), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=TimezoneUtils.utc_now)

    lines = db.relationship(
        'StockMovementLine',
        back_populates='movement',
        cascade='all, delete-orphan',
        lazy='selectin',
    )


class StockMovementLine(db.Model):
    __tablename__ = 'stock_movement_line'

    id = db.Column(db.Integer, primary_key=True)
    movement_id = db.Column(db.Integer, db.ForeignKey('stock_movement.id'), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id'), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)

    movement = db.relationship('StockMovement', back_populates='lines')

    __table_args__ = (
        db.CheckConstraint('quantity > 0', name='ck_stock_movement_line_quantity_positive'),
    )
