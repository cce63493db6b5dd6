"""Stock and valuation rules for order status changes.

Orders move stock only when their status crosses the realized state
(``received`` for purchases, ``completed`` for sales). Everything here is
pure: functions take the current catalog and return the products they would
change, leaving the commit to the store.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from typing import Mapping, Optional, Union

from invpro.domain.models import (
    PURCHASE_REALIZED,
    SALE_REALIZED,
    Product,
    PurchaseOrder,
    SaleOrder,
)

log = logging.getLogger("invpro.ledger")


class Movement(str, enum.Enum):
    REALIZE = "realize"
    REVERSE = "reverse"
    NONE = "none"


class Outcome(str, enum.Enum):
    APPLIED = "applied"
    APPLIED_WITH_FLOOR = "applied_with_floor"
    SKIPPED_MISSING_REFERENCE = "skipped_missing_reference"


@dataclass(frozen=True)
class StockAdjustment:
    product_id: str
    requested_delta: int
    applied_delta: int
    stock_after: Optional[int]
    outcome: Outcome


@dataclass(frozen=True)
class LedgerResult:
    movement: Movement
    products: dict[str, Product]
    adjustments: tuple[StockAdjustment, ...] = ()


def value_on_hand(purchase_price: float, in_stock: int) -> float:
    return float(purchase_price) * int(in_stock)


def with_stock(product: Product, in_stock: int) -> Product:
    return replace(
        product,
        in_stock=int(in_stock),
        value_on_hand=value_on_hand(product.purchase_price, in_stock),
    )


def revalue(product: Product) -> Product:
    return with_stock(product, product.in_stock)


def classify(previous: Optional[str], current: str, realized: str) -> Movement:
    """Compare the stored status with the new one.

    ``previous`` is None on creation, so only the realize row can apply.
    """
    was_realized = previous == realized
    is_realized = current == realized
    if is_realized and not was_realized:
        return Movement.REALIZE
    if was_realized and not is_realized:
        return Movement.REVERSE
    return Movement.NONE


def _move(
    catalog: Mapping[str, Product],
    changed: dict[str, Product],
    product_id: str,
    delta: int,
) -> StockAdjustment:
    product = changed.get(product_id) or catalog.get(product_id)
    if product is None:
        log.warning(
            "stock_skipped_missing_product product_id=%s delta=%s", product_id, delta,
            extra={"product_id": product_id},
        )
        return StockAdjustment(product_id, delta, 0, None, Outcome.SKIPPED_MISSING_REFERENCE)

    target = product.in_stock + delta
    new_stock = max(0, target)
    changed[product_id] = with_stock(product, new_stock)

    if new_stock != target:
        log.warning(
            "stock_floor product_id=%s requested=%s stock_before=%s",
            product_id, delta, product.in_stock,
            extra={"product_id": product_id},
        )
        outcome = Outcome.APPLIED_WITH_FLOOR
    else:
        outcome = Outcome.APPLIED
    return StockAdjustment(product_id, delta, new_stock - product.in_stock, new_stock, outcome)


def purchase_movement(
    catalog: Mapping[str, Product],
    previous_status: Optional[str],
    purchase: PurchaseOrder,
) -> LedgerResult:
    movement = classify(previous_status, purchase.status, PURCHASE_REALIZED)
    if movement is Movement.NONE:
        return LedgerResult(movement, {})

    qty = int(purchase.quantity)
    delta = qty if movement is Movement.REALIZE else -qty
    changed: dict[str, Product] = {}
    adjustment = _move(catalog, changed, purchase.product_id, delta)
    return LedgerResult(movement, changed, (adjustment,))


def sale_movement(
    catalog: Mapping[str, Product],
    previous_status: Optional[str],
    sale: SaleOrder,
) -> LedgerResult:
    movement = classify(previous_status, sale.status, SALE_REALIZED)
    if movement is Movement.NONE:
        return LedgerResult(movement, {})

    changed: dict[str, Product] = {}
    adjustments = []
    for item in sale.items:
        qty = int(item.quantity)
        delta = -qty if movement is Movement.REALIZE else qty
        adjustments.append(_move(catalog, changed, item.product_id, delta))
    return LedgerResult(movement, changed, tuple(adjustments))


@dataclass(frozen=True)
class OrderCommit:
    """What a create/update call stored and how stock moved because of it."""

    order: Union[PurchaseOrder, SaleOrder]
    movement: Movement
    adjustments: tuple[StockAdjustment, ...] = ()
