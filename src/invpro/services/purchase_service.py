from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date as date_cls
from typing import Optional

from invpro.domain.errors import NotFoundError, ValidationError
from invpro.domain.ledger import OrderCommit, purchase_movement
from invpro.domain.models import PURCHASE_STATUSES, PurchaseOrder
from invpro.services.validation import whole_number

log = logging.getLogger("invpro.ledger")

_EDITABLE = {"supplier_id", "product_id", "quantity", "unit_price", "total_amount", "date", "status"}


def _check_purchase(p: PurchaseOrder) -> None:
    if not p.supplier_id or not p.product_id:
        raise ValidationError("Supplier and product are required.")
    if p.quantity <= 0:
        raise ValidationError("Qty must be >= 1.")
    if p.unit_price < 0:
        raise ValidationError("Unit price must be >= 0.")
    if p.status not in PURCHASE_STATUSES:
        raise ValidationError(f"Invalid purchase status: {p.status!r}")
    try:
        date_cls.fromisoformat(p.date)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid date: {p.date!r}") from e


def _coerce(changes: dict) -> dict:
    out = dict(changes)
    try:
        if "quantity" in out:
            out["quantity"] = whole_number(out["quantity"], "Qty")
        if "unit_price" in out:
            out["unit_price"] = float(out["unit_price"])
        if "total_amount" in out:
            out["total_amount"] = float(out["total_amount"])
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid numeric value: {e}") from e
    return out


class PurchaseService:
    def __init__(self, store):
        self.store = store

    def list_purchases(self) -> list[PurchaseOrder]:
        return self.store.purchases()

    def get_purchase(self, purchase_id: str) -> PurchaseOrder:
        p = self.store.get_purchase(purchase_id)
        if not p:
            raise NotFoundError("Purchase not found.")
        return p

    def filter_purchases(self, term: str = "", status: str = "all") -> list[PurchaseOrder]:
        needle = (term or "").strip().lower()
        out = []
        for p in self.store.purchases():
            if status != "all" and p.status != status:
                continue
            if needle:
                supplier = self.store.get_supplier(p.supplier_id)
                product = self.store.get_product(p.product_id)
                haystack = [p.id.lower()]
                if supplier:
                    haystack.append(supplier.name.lower())
                if product:
                    haystack.append(product.name.lower())
                if not any(needle in h for h in haystack):
                    continue
            out.append(p)
        return out

    def add_purchase(
        self,
        supplier_id: str,
        product_id: str,
        quantity: int,
        unit_price: float,
        date: Optional[str] = None,
        status: str = "pending",
        total_amount: Optional[float] = None,
    ) -> OrderCommit:
        """
        A purchase created as ``received`` adds its quantity to the product
        in the same commit as the order itself.
        """
        fields = _coerce({"quantity": quantity, "unit_price": unit_price})
        if total_amount is None:
            total_amount = fields["quantity"] * fields["unit_price"]

        with self.store.transaction() as uow:
            purchase = PurchaseOrder(
                id=self.store.new_id("purchases"),
                supplier_id=supplier_id,
                product_id=product_id,
                total_amount=float(total_amount),
                date=date or date_cls.today().isoformat(),
                status=status,
                **fields,
            )
            _check_purchase(purchase)
            result = purchase_movement(self.store.product_map(), None, purchase)
            uow.put(purchase)
            for product in result.products.values():
                uow.put(product)

        log.info(
            "purchase_created purchase_id=%s product_id=%s qty=%s status=%s movement=%s",
            purchase.id, purchase.product_id, purchase.quantity, purchase.status, result.movement.value,
            extra={"order_id": purchase.id, "product_id": purchase.product_id},
        )
        return OrderCommit(purchase, result.movement, result.adjustments)

    def update_purchase(self, purchase_id: str, **changes) -> OrderCommit:
        """Merge ``changes`` and move stock if the status crossed ``received``.

        ``total_amount`` is kept as stored unless given explicitly. Quantity
        edits on a purchase that stays received do not touch stock.
        """
        unknown = set(changes) - _EDITABLE
        if unknown:
            raise ValidationError(f"Unknown purchase fields: {', '.join(sorted(unknown))}")
        changes = _coerce(changes)

        with self.store.transaction() as uow:
            current = self.store.get_purchase(purchase_id)
            if not current:
                raise NotFoundError("Purchase not found.")
            updated = replace(current, **changes)
            _check_purchase(updated)
            result = purchase_movement(self.store.product_map(), current.status, updated)
            uow.put(updated)
            for product in result.products.values():
                uow.put(product)

        log.info(
            "purchase_updated purchase_id=%s status=%s->%s movement=%s",
            purchase_id, current.status, updated.status, result.movement.value,
            extra={"order_id": purchase_id, "adjustments": [a.outcome.value for a in result.adjustments]},
        )
        return OrderCommit(updated, result.movement, result.adjustments)
