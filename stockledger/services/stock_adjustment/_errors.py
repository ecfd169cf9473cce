"""
Error taxonomy for stock adjustments.

Single-line errors raised by ``adjust`` are caught at the batch boundary and
reported per item; they only propagate to callers of ``adjust`` itself.
"""


class StockLedgerError(RuntimeError):
    """Base class for stock ledger failures."""


class NotConfiguredError(StockLedgerError):
    """The product has no stock row at the requested location."""

    def __init__(self, product_id: int, location_id: int):
        self.product_id = product_id
        self.location_id = location_id
        super().__init__(f"Product {product_id} is not stocked at location {location_id}")


class InsufficientStockError(StockLedgerError):
    """The change would take the on-hand quantity below zero."""

    def __init__(self, product_id: int, location_id: int, old_quantity: int, new_quantity: int):
        self.product_id = product_id
        self.location_id = location_id
        self.old_quantity = old_quantity
        self.new_quantity = new_quantity
        super().__init__(
            f"Insufficient stock at location {location_id}: "
            f"{old_quantity} on hand, change would leave {new_quantity}"
        )

    @property
    def shortfall(self) -> int:
        return -self.new_quantity


class PersistenceError(StockLedgerError):
    """The underlying store rejected or failed the operation."""
