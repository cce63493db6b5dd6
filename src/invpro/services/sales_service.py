from __future__ import annotations

import logging
from dataclasses import asdict, replace
from datetime import date as date_cls
from typing import Iterable, Optional

from invpro.domain.errors import NotFoundError, ValidationError
from invpro.domain.ledger import OrderCommit, sale_movement
from invpro.domain.models import SALE_STATUSES, ResolvedLine, SaleItem, SaleOrder
from invpro.services.validation import whole_number

log = logging.getLogger("invpro.ledger")

_EDITABLE = {"customer_id", "items", "total_amount", "date", "status"}


def _parse_items(items: Iterable) -> tuple[SaleItem, ...]:
    parsed = []
    for it in items:
        if isinstance(it, SaleItem):
            it = asdict(it)
        try:
            parsed.append(SaleItem(
                product_id=str(it["product_id"]),
                quantity=whole_number(it["quantity"], "Qty"),
                unit_price=float(it["unit_price"]),
            ))
        except KeyError as e:
            raise ValidationError(f"Sale item is missing {e.args[0]!r}.") from e
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid sale item: {e}") from e

    if not parsed:
        raise ValidationError("Sale has no items.")
    for it in parsed:
        if not it.product_id:
            raise ValidationError("Sale item product is required.")
        if it.quantity <= 0:
            raise ValidationError("Qty must be >= 1.")
        if it.unit_price < 0:
            raise ValidationError("Unit price must be >= 0.")
    return tuple(parsed)


def _total(items: Iterable[SaleItem]) -> float:
    return float(sum(it.subtotal for it in items))


def _check_sale(s: SaleOrder) -> None:
    if not s.customer_id:
        raise ValidationError("Customer is required.")
    if s.status not in SALE_STATUSES:
        raise ValidationError(f"Invalid sale status: {s.status!r}")
    try:
        date_cls.fromisoformat(s.date)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid date: {s.date!r}") from e


class SalesService:
    def __init__(self, store):
        self.store = store

    def list_sales(self) -> list[SaleOrder]:
        return self.store.sales()

    def get_sale(self, sale_id: str) -> SaleOrder:
        s = self.store.get_sale(sale_id)
        if not s:
            raise NotFoundError("Sale not found.")
        return s

    def resolve_items(self, sale_id: str) -> list[ResolvedLine]:
        sale = self.get_sale(sale_id)
        return [ResolvedLine(item=it, product=self.store.get_product(it.product_id)) for it in sale.items]

    def filter_sales(self, term: str = "", status: str = "all") -> list[SaleOrder]:
        needle = (term or "").strip().lower()
        out = []
        for s in self.store.sales():
            if status != "all" and s.status != status:
                continue
            if needle:
                customer = self.store.get_customer(s.customer_id)
                matches = needle in s.id.lower() or (customer is not None and needle in customer.name.lower())
                if not matches:
                    continue
            out.append(s)
        return out

    def add_sale(
        self,
        customer_id: str,
        items: Iterable,
        date: Optional[str] = None,
        status: str = "pending",
    ) -> OrderCommit:
        """
        items: [{product_id, quantity, unit_price}]

        A sale created as ``completed`` takes each line's quantity out of
        stock (floored at zero) in the same commit as the order.
        """
        parsed = _parse_items(items)

        with self.store.transaction() as uow:
            sale = SaleOrder(
                id=self.store.new_id("sales"),
                customer_id=customer_id,
                items=parsed,
                total_amount=_total(parsed),
                date=date or date_cls.today().isoformat(),
                status=status,
            )
            _check_sale(sale)
            result = sale_movement(self.store.product_map(), None, sale)
            uow.put(sale)
            for product in result.products.values():
                uow.put(product)

        log.info(
            "sale_created sale_id=%s items=%s total=%.2f status=%s movement=%s",
            sale.id, len(sale.items), sale.total_amount, sale.status, result.movement.value,
            extra={"order_id": sale.id, "product_ids": [it.product_id for it in sale.items]},
        )
        return OrderCommit(sale, result.movement, result.adjustments)

    def update_sale(self, sale_id: str, **changes) -> OrderCommit:
        """Merge ``changes`` and move stock if the status crossed ``completed``.

        New ``items`` recompute ``total_amount`` unless it is given too.
        Item edits on a sale that stays completed do not touch stock.
        """
        unknown = set(changes) - _EDITABLE
        if unknown:
            raise ValidationError(f"Unknown sale fields: {', '.join(sorted(unknown))}")
        changes = dict(changes)
        if "items" in changes:
            changes["items"] = _parse_items(changes["items"])
            if "total_amount" not in changes:
                changes["total_amount"] = _total(changes["items"])
        if "total_amount" in changes:
            try:
                changes["total_amount"] = float(changes["total_amount"])
            except (TypeError, ValueError) as e:
                raise ValidationError(f"Invalid numeric value: {e}") from e

        with self.store.transaction() as uow:
            current = self.store.get_sale(sale_id)
            if not current:
                raise NotFoundError("Sale not found.")
            updated = replace(current, **changes)
            _check_sale(updated)
            result = sale_movement(self.store.product_map(), current.status, updated)
            uow.put(updated)
            for product in result.products.values():
                uow.put(product)

        log.info(
            "sale_updated sale_id=%s status=%s->%s movement=%s",
            sale_id, current.status, updated.status, result.movement.value,
            extra={"order_id": sale_id, "adjustments": [a.outcome.value for a in result.adjustments]},
        )
        return OrderCommit(updated, result.movement, result.adjustments)
