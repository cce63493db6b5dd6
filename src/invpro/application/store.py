from __future__ import annotations

import logging
import secrets
import string
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from invpro.domain.models import (
    BusinessInfo,
    Customer,
    Product,
    PurchaseOrder,
    SaleOrder,
    Supplier,
)
from invpro.repositories.contracts import COLLECTIONS, Changeset, StateRepository
from invpro.repositories.unit_of_work import RepositoryUnitOfWork, UnitOfWork

log = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


class InventoryStore:
    """In-memory collections backed by a repository.

    Reads come from memory. Writes are staged in ``transaction()`` and reach
    memory only after the repository accepted the whole changeset.
    """

    def __init__(self, repo: StateRepository, uow_factory: Callable[[], UnitOfWork] | None = None):
        self.repo = repo
        self.uow_factory = uow_factory or (lambda: RepositoryUnitOfWork(repo))
        self._lock = threading.RLock()
        self._collections: dict[str, dict[str, object]] = {name: {} for name in COLLECTIONS}
        self._business_info = BusinessInfo()

    def load(self) -> None:
        state = self.repo.load_state()
        with self._lock:
            for name in COLLECTIONS:
                self._collections[name] = {r.id: r for r in state.collection(name)}
            self._business_info = state.business_info or BusinessInfo()
        log.info(
            "store_loaded %s",
            " ".join(f"{name}={len(recs)}" for name, recs in self._collections.items()),
        )

    @contextmanager
    def transaction(self) -> Iterator[UnitOfWork]:
        with self._lock:
            with self.uow_factory() as uow:
                yield uow
            self._apply(uow.changes)

    def _apply(self, changes: Changeset) -> None:
        for name, records in changes.upserts.items():
            coll = self._collections[name]
            for record in records:
                coll[record.id] = record
        for name, ids in changes.deletes.items():
            coll = self._collections[name]
            for record_id in ids:
                coll.pop(record_id, None)
        if changes.business_info is not None:
            self._business_info = changes.business_info

    def new_id(self, collection: str) -> str:
        existing = self._collections[collection]
        while True:
            candidate = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
            if candidate not in existing:
                return candidate

    # ---------- Reads ----------
    def records(self, collection: str) -> list:
        with self._lock:
            return list(self._collections[collection].values())

    def find(self, collection: str, record_id: str):
        with self._lock:
            return self._collections[collection].get(record_id)

    def product_map(self) -> dict[str, Product]:
        with self._lock:
            return dict(self._collections["products"])

    def products(self) -> list[Product]:
        return self.records("products")

    def get_product(self, product_id: str) -> Optional[Product]:
        return self.find("products", product_id)

    def customers(self) -> list[Customer]:
        return self.records("customers")

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        return self.find("customers", customer_id)

    def suppliers(self) -> list[Supplier]:
        return self.records("suppliers")

    def get_supplier(self, supplier_id: str) -> Optional[Supplier]:
        return self.find("suppliers", supplier_id)

    def purchases(self) -> list[PurchaseOrder]:
        return self.records("purchases")

    def get_purchase(self, purchase_id: str) -> Optional[PurchaseOrder]:
        return self.find("purchases", purchase_id)

    def sales(self) -> list[SaleOrder]:
        return self.records("sales")

    def get_sale(self, sale_id: str) -> Optional[SaleOrder]:
        return self.find("sales", sale_id)

    def business_info(self) -> BusinessInfo:
        return self._business_info
