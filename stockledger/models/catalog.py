from ..extensions import db
from ..utils.timezone_utils import TimezoneUtils


class Product(db.Model):
    """Sellable product whose stock is tracked per location"""
    __tablename__ = 'product'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    sku = db.Column(db.String(64), nullable=True, unique=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=TimezoneUtils.utc_now)

    stock_levels = db.relationship('StockLevel', back_populates='product', lazy='selectin')

    def display_name(self):
        return self.name or f"Product {self.id}"

    def __repr__(self):
        return f'<Product {self.id} {self.name!r}>'


class StockLocation(db.Model):
    """Named warehouse or inventory bucket"""
    __tablename__ = 'stock_location'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=TimezoneUtils.utc_now)

    def __repr__(self):
        return f'<StockLocation {self.id} {self.name!r}>'
