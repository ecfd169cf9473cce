"""
Stock Adjustment Service - Canonical Entry Point

Single source of truth for every change to ``StockLevel.quantity``. All
quantity changes must go through ``adjust``; sale workflows use the batch
operations built on top of it.
"""

from ._core import adjust
from ._batch import apply_sale, revert_sale, apply_deltas, validate_line_quantity
from ._delta import calculate_stock_delta
from ._availability import validate_stock_availability, AvailabilityReport
from ._history import get_stock_history, get_recent_stock_movements
from ._errors import (
    StockLedgerError,
    NotConfiguredError,
    InsufficientStockError,
    PersistenceError,
)
from ._types import (
    AdjustmentEntry,
    AdjustmentResult,
    StockDelta,
    StockLine,
    StockOperationResult,
)

# Public API - expose the canonical functions needed by sale workflows
__all__ = [
    'adjust',
    'apply_sale',
    'revert_sale',
    'apply_deltas',
    'validate_line_quantity',
    'calculate_stock_delta',
    'validate_stock_availability',
    'get_stock_history',
    'get_recent_stock_movements',
    'StockLedgerError',
    'NotConfiguredError',
    'InsufficientStockError',
    'PersistenceError',
    'AdjustmentEntry',
    'AdjustmentResult',
    'AvailabilityReport',
    'StockDelta',
    'StockLine',
    'StockOperationResult',
]
