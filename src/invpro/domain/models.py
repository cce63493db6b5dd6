from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Optional

PURCHASE_STATUSES = ("pending", "received", "cancelled")
SALE_STATUSES = ("pending", "completed", "cancelled")

PURCHASE_REALIZED = "received"
SALE_REALIZED = "completed"


@dataclass(frozen=True)
class Product:
    id: str
    upc: str
    name: str
    description: str
    picture: str
    purchase_price: float
    sales_price: float
    in_stock: int
    value_on_hand: float
    supplier_id: Optional[str] = None


@dataclass(frozen=True)
class Customer:
    id: str
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""


@dataclass(frozen=True)
class Supplier:
    id: str
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""


@dataclass(frozen=True)
class PurchaseOrder:
    id: str
    supplier_id: str
    product_id: str
    quantity: int
    unit_price: float
    total_amount: float
    date: str
    status: str


@dataclass(frozen=True)
class SaleItem:
    product_id: str
    quantity: int
    unit_price: float

    @property
    def subtotal(self) -> float:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class SaleOrder:
    id: str
    customer_id: str
    items: tuple[SaleItem, ...]
    total_amount: float
    date: str
    status: str


@dataclass(frozen=True)
class BusinessInfo:
    name: str = "Your Business Name"
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    tax_id: str = ""
    logo: str = ""


@dataclass(frozen=True)
class ResolvedLine:
    """A sale line resolved against the current catalog."""

    item: SaleItem
    product: Optional[Product] = field(default=None)


def field_names(cls) -> tuple[str, ...]:
    return tuple(f.name for f in fields(cls))


def record_from_dict(cls, data: dict):
    """Build a record from a row dict, ignoring unknown keys.

    NULL text columns become empty strings and a product's ``value_on_hand``
    is recomputed from its cost and stock, whatever the row carried.
    """
    values = {}
    for f in fields(cls):
        if f.name not in data:
            continue
        value = data[f.name]
        if value is None and f.type in ("str", str):
            value = ""
        values[f.name] = value
    if cls is Product:
        values["purchase_price"] = float(values.get("purchase_price") or 0)
        values["sales_price"] = float(values.get("sales_price") or 0)
        values["in_stock"] = int(values.get("in_stock") or 0)
        values["value_on_hand"] = values["purchase_price"] * values["in_stock"]
    if cls is SaleOrder:
        values["items"] = tuple(
            it if isinstance(it, SaleItem) else SaleItem(
                product_id=str(it["product_id"]),
                quantity=int(it["quantity"]),
                unit_price=float(it["unit_price"]),
            )
            for it in values.get("items") or ()
        )
    return cls(**values)
