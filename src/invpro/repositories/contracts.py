from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Optional, Protocol

from invpro.domain.models import (
    BusinessInfo,
    Customer,
    Product,
    PurchaseOrder,
    SaleOrder,
    Supplier,
    record_from_dict,
)

COLLECTIONS: dict[str, type] = {
    "products": Product,
    "customers": Customer,
    "suppliers": Supplier,
    "purchases": PurchaseOrder,
    "sales": SaleOrder,
}


def collection_for(record: object) -> str:
    for name, cls in COLLECTIONS.items():
        if type(record) is cls:
            return name
    raise TypeError(f"Not a stored record type: {type(record).__name__}")


@dataclass
class StoredState:
    products: list[Product] = field(default_factory=list)
    customers: list[Customer] = field(default_factory=list)
    suppliers: list[Supplier] = field(default_factory=list)
    purchases: list[PurchaseOrder] = field(default_factory=list)
    sales: list[SaleOrder] = field(default_factory=list)
    business_info: Optional[BusinessInfo] = None

    def collection(self, name: str) -> list:
        return getattr(self, name)


@dataclass
class Changeset:
    """Writes staged by one transaction, committed together."""

    upserts: dict[str, list] = field(default_factory=dict)
    deletes: dict[str, list[str]] = field(default_factory=dict)
    business_info: Optional[BusinessInfo] = None

    def put(self, record: object) -> None:
        self.upserts.setdefault(collection_for(record), []).append(record)

    def remove(self, collection: str, record_id: str) -> None:
        if collection not in COLLECTIONS:
            raise KeyError(collection)
        self.deletes.setdefault(collection, []).append(record_id)

    def is_empty(self) -> bool:
        return not self.upserts and not self.deletes and self.business_info is None

    def to_dict(self) -> dict:
        return {
            "upserts": {name: [asdict(r) for r in records] for name, records in self.upserts.items()},
            "deletes": {name: list(ids) for name, ids in self.deletes.items()},
            "business_info": asdict(self.business_info) if self.business_info is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Changeset":
        info = data.get("business_info")
        return cls(
            upserts={
                name: [record_from_dict(COLLECTIONS[name], row) for row in rows]
                for name, rows in (data.get("upserts") or {}).items()
            },
            deletes={name: list(ids) for name, ids in (data.get("deletes") or {}).items()},
            business_info=record_from_dict(BusinessInfo, info) if info is not None else None,
        )


class StateRepository(Protocol):
    def load_state(self) -> StoredState: ...
    def commit(self, changes: Changeset) -> None: ...
