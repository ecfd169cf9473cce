"""
Type definitions for the stock adjustment service
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class StockLine:
    """A sale line: how many units of a product the sale consumes"""
    product_id: int
    quantity: Any


@dataclass(frozen=True)
class StockDelta:
    """Net signed change for one product (positive returns stock)"""
    product_id: int
    quantity_change: int

    def to_dict(self) -> Dict[str, int]:
        return {'product_id': self.product_id, 'quantity_change': self.quantity_change}


@dataclass(frozen=True)
class AdjustmentResult:
    """Outcome of a single successful ``adjust`` call"""
    product_id: int
    location_id: int
    old_quantity: int
    new_quantity: int
    history_id: Optional[int] = None


@dataclass
class AdjustmentEntry:
    """Per-item report inside a batch result"""
    product_id: Optional[int]
    product_name: Optional[str] = None
    old_quantity: Optional[int] = None
    new_quantity: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data = {'product_id': self.product_id, 'product_name': self.product_name}
        if self.error is None:
            data['old_quantity'] = self.old_quantity
            data['new_quantity'] = self.new_quantity
        else:
            data['error'] = self.error
        return data


@dataclass
class StockOperationResult:
    """Accumulated outcome of a best-effort batch.

    ``success`` is true only when no item failed and the batch ran to the end.
    ``completed`` is false when a timeout or cancellation stopped the batch;
    ``skipped`` then lists the product ids that were never attempted.
    """
    errors: List[str] = field(default_factory=list)
    adjustments: List[AdjustmentEntry] = field(default_factory=list)
    completed: bool = True
    skipped: List[int] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def failed_items(self) -> List[AdjustmentEntry]:
        return [entry for entry in self.adjustments if not entry.ok]

    @property
    def applied_items(self) -> List[AdjustmentEntry]:
        return [entry for entry in self.adjustments if entry.ok]

    def record_success(self, product_id, product_name, old_quantity, new_quantity) -> None:
        self.adjustments.append(AdjustmentEntry(
            product_id=product_id,
            product_name=product_name,
            old_quantity=old_quantity,
            new_quantity=new_quantity,
        ))

    def record_failure(self, product_id, product_name, message) -> None:
        self.errors.append(f"{product_name}: {message}")
        self.adjustments.append(AdjustmentEntry(
            product_id=product_id,
            product_name=product_name,
            error=message,
        ))

    def record_interruption(self, reason: str, processed: int, total: int, skipped: List[int]) -> None:
        self.completed = False
        self.skipped = list(skipped)
        self.errors.append(f"Stopped after {processed} of {total} items: {reason}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'errors': list(self.errors),
            'adjustments': [entry.to_dict() for entry in self.adjustments],
            'completed': self.completed,
            'skipped': list(self.skipped),
        }


def read_field(item: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a mapping or an object (dataclass, ORM row)."""
    if isinstance(item, Mapping):
        return item.get(name, default)
    return getattr(item, name, default)
