import enum

from ..extensions import db
from ..utils.timezone_utils import TimezoneUtils


class SaleStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class Sale(db.Model):
    """Sale header; only paid sales count as stock consumption"""
    __tablename__ = 'sale'

    id = db.Column(db.Integer, primary_key=True)
    status = db.Column(db.String(16), nullable=False, default=SaleStatus.PENDING.value, index=True)
    location_id = db.Column(db.Integer, db.ForeignKey('stock_location.id'), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=TimezoneUtils.utc_now)

    items = db.relationship(
        'SaleItem',
        back_populates='sale',
        cascade='all, delete-orphan',
        lazy='selectin',
    )

    def line_items(self):
        """Sale lines in the shape the stock adjustment service consumes."""
        return [{'product_id': item.product_id, 'quantity': item.quantity} for item in self.items]


class SaleItem(db.Model):
    __tablename__ = 'sale_item'

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey('sale.id'), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id'), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)

    sale = db.relationship('Sale', back_populates='items')

    __table_args__ = (
        db.CheckConstraint('quantity > 0', name='ck_sale_item_quantity_positive'),
    )
