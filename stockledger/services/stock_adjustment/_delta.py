from typing import Iterable, List

from ._types import StockDelta, read_field


def calculate_stock_delta(old_items: Iterable, new_items: Iterable) -> List[StockDelta]:
    """Net per-product stock change when a sale's lines are edited.

    Old lines were already consumed, so their quantities come back to stock;
    new lines must now be consumed. Products that net to zero are dropped.
    Products keep the order of their first appearance.
    """
    delta = {}

    for item in old_items or ():
        product_id = read_field(item, 'product_id')
        delta[product_id] = delta.get(product_id, 0) + read_field(item, 'quantity', 0)

    for item in new_items or ():
        product_id = read_field(item, 'product_id')
        delta[product_id] = delta.get(product_id, 0) - read_field(item, 'quantity', 0)

    return [
        StockDelta(product_id=product_id, quantity_change=change)
        for product_id, change in delta.items()
        if change != 0
    ]
