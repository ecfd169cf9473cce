from ..extensions import db
from ..utils.timezone_utils import TimezoneUtils

OPERATION_TYPES = ('sale', 'purchase', 'adjustment', 'reversal', 'transfer', 'return')


class StockHistory(db.Model):
    """Append-only snapshot of every quantity change applied to a stock level.

    The earliest row for a product carries the opening quantity used by the
    reconciliation audit.
    """
    __tablename__ = 'stock_history'

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id'), nullable=False, index=True)
    location_id = db.Column(db.Integer, db.ForeignKey('stock_location.id'), nullable=False, index=True)
    quantity_before = db.Column(db.Integer, nullable=False)
    quantity_after = db.Column(db.Integer, nullable=False)
    quantity_change = db.Column(db.Integer, nullable=False)
    operation_type = db.Column(db.String(32), nullable=False, default='adjustment', index=True)
    operation_id = db.Column(db.Integer, nullable=True)
    user_id = db.Column(db.Integer, nullable=True)
    reason = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=TimezoneUtils.utc_now,
        index=True,
    )

    product = db.relationship('Product')
    location = db.relationship('StockLocation')

    __table_args__ = (
        db.Index('ix_stock_history_product_created', 'product_id', 'created_at'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'product_id': self.product_id,
            'product_name': self.product.name if self.product else None,
            'location_id': self.location_id,
            'location_name': self.location.name if self.location else None,
            'quantity_before': self.quantity_before,
            'quantity_after': self.quantity_after,
            'quantity_change': self.quantity_change,
            'operation_type': self.operation_type,
            'operation_id': self.operation_id,
            'user_id': self.user_id,
            'reason': self.reason,
            'created_at': TimezoneUtils.to_iso(self.created_at),
        }
