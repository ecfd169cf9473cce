"""Models package - imports all models for the application"""
from ..extensions import db

# Import in dependency order for PostgreSQL table creation
from .catalog import Product, StockLocation
from .stock_level import StockLevel
from .stock_history import StockHistory, OPERATION_TYPES
from .movement import StockMovement, StockMovementLine, MovementType, MovementStatus
from .sale import Sale, SaleItem, SaleStatus

__all__ = [
    'db',
    'Product',
    'StockLocation',
    'StockLevel',
    'StockHistory',
    'OPERATION_TYPES',
    'StockMovement',
    'StockMovementLine',
    'MovementType',
    'MovementStatus',
    'Sale',
    'SaleItem',
    'SaleStatus',
]
