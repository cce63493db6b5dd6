from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from invpro.domain.errors import NotFoundError, ValidationError
from invpro.domain.ledger import revalue
from invpro.domain.models import Product
from invpro.services.validation import whole_number

log = logging.getLogger(__name__)

_EDITABLE = {"upc", "name", "description", "picture", "purchase_price", "sales_price", "in_stock", "supplier_id"}


def _check_product(p: Product) -> None:
    if not p.name:
        raise ValidationError("Name is required.")
    if p.purchase_price < 0:
        raise ValidationError("Purchase price must be >= 0.")
    if p.sales_price < 0:
        raise ValidationError("Sales price must be >= 0.")
    if p.in_stock < 0:
        raise ValidationError("Stock must be >= 0.")


def _coerce(changes: dict) -> dict:
    out = dict(changes)
    try:
        if "purchase_price" in out:
            out["purchase_price"] = float(out["purchase_price"])
        if "sales_price" in out:
            out["sales_price"] = float(out["sales_price"])
        if "in_stock" in out:
            out["in_stock"] = whole_number(out["in_stock"], "Stock")
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid numeric value: {e}") from e
    for key in ("upc", "name", "description", "picture"):
        if key in out:
            out[key] = (out[key] or "").strip()
    return out


class InventoryService:
    def __init__(self, store):
        self.store = store

    def list_products(self) -> list[Product]:
        return self.store.products()

    def get_product(self, product_id: str) -> Product:
        p = self.store.get_product(product_id)
        if not p:
            raise NotFoundError("Product not found.")
        return p

    def search_products(self, term: str) -> list[Product]:
        needle = (term or "").strip().lower()
        if not needle:
            return self.list_products()
        return [
            p for p in self.store.products()
            if needle in p.name.lower() or needle in p.upc.lower() or needle in p.description.lower()
        ]

    def low_stock(self, threshold: int = 10) -> list[Product]:
        return [p for p in self.store.products() if p.in_stock < threshold]

    def add_product(
        self,
        name: str,
        purchase_price: float,
        sales_price: float,
        in_stock: int = 0,
        upc: str = "",
        description: str = "",
        picture: str = "",
        supplier_id: Optional[str] = None,
    ) -> Product:
        fields = _coerce({
            "name": name,
            "purchase_price": purchase_price,
            "sales_price": sales_price,
            "in_stock": in_stock,
            "upc": upc,
            "description": description,
            "picture": picture,
        })
        with self.store.transaction() as uow:
            product = revalue(Product(id=self.store.new_id("products"), value_on_hand=0.0, supplier_id=supplier_id, **fields))
            _check_product(product)
            uow.put(product)
        log.info("product_created product_id=%s stock=%s", product.id, product.in_stock)
        return product

    def update_product(self, product_id: str, **changes) -> Product:
        if "value_on_hand" in changes:
            raise ValidationError("value_on_hand is derived from purchase price and stock.")
        unknown = set(changes) - _EDITABLE
        if unknown:
            raise ValidationError(f"Unknown product fields: {', '.join(sorted(unknown))}")
        changes = _coerce(changes)

        with self.store.transaction() as uow:
            current = self.store.get_product(product_id)
            if not current:
                raise NotFoundError("Product not found.")
            updated = revalue(replace(current, **changes))
            _check_product(updated)
            uow.put(updated)
        return updated

    def delete_product(self, product_id: str) -> None:
        # Historical orders keep their product ids; lookups on them resolve to None.
        with self.store.transaction() as uow:
            if not self.store.get_product(product_id):
                raise NotFoundError("Product not found.")
            uow.remove("products", product_id)
        log.info("product_deleted product_id=%s", product_id)
