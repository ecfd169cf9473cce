from ..extensions import db
from ..utils.timezone_utils import TimezoneUtils


class StockLevel(db.Model):
    """On-hand quantity of one product at one stock location.

    Rows are provisioned when a product is assigned to a location and are
    only ever mutated through ``stockledger.services.stock_adjustment.adjust``.
    """
    __tablename__ = 'stock_level'

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id'), nullable=False, index=True)
    location_id = db.Column(db.Integer, db.ForeignKey('stock_location.id'), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=TimezoneUtils.utc_now,
    )

    product = db.relationship('Product', back_populates='stock_levels')
    location = db.relationship('StockLocation')

    __table_args__ = (
        db.UniqueConstraint('product_id', 'location_id', name='uq_stock_level_product_location'),
        db.CheckConstraint('quantity >= 0', name='ck_stock_level_quantity_non_negative'),
    )

    def __repr__(self):
        return f'<StockLevel product={self.product_id} location={self.location_id} qty={self.quantity}>'
