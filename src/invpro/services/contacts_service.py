from __future__ import annotations

import logging
from dataclasses import replace

from invpro.domain.errors import NotFoundError, ValidationError
from invpro.domain.models import Customer, Supplier, field_names

log = logging.getLogger(__name__)


class ContactsService:
    """Flat CRUD for customers and suppliers. No side effects on orders."""

    def __init__(self, store):
        self.store = store

    # ---------- Customers ----------
    def list_customers(self) -> list[Customer]:
        return self.store.customers()

    def get_customer(self, customer_id: str) -> Customer:
        return self._get("customers", customer_id, "Customer not found.")

    def add_customer(self, name: str, **fields) -> Customer:
        return self._add(Customer, "customers", name, fields)

    def update_customer(self, customer_id: str, **changes) -> Customer:
        return self._update(Customer, "customers", customer_id, changes, "Customer not found.")

    def delete_customer(self, customer_id: str) -> None:
        self._delete("customers", customer_id, "Customer not found.")

    def search_customers(self, term: str) -> list[Customer]:
        return self._search(self.store.customers(), term)

    # ---------- Suppliers ----------
    def list_suppliers(self) -> list[Supplier]:
        return self.store.suppliers()

    def get_supplier(self, supplier_id: str) -> Supplier:
        return self._get("suppliers", supplier_id, "Supplier not found.")

    def add_supplier(self, name: str, **fields) -> Supplier:
        return self._add(Supplier, "suppliers", name, fields)

    def update_supplier(self, supplier_id: str, **changes) -> Supplier:
        return self._update(Supplier, "suppliers", supplier_id, changes, "Supplier not found.")

    def delete_supplier(self, supplier_id: str) -> None:
        self._delete("suppliers", supplier_id, "Supplier not found.")

    def search_suppliers(self, term: str) -> list[Supplier]:
        return self._search(self.store.suppliers(), term)

    # ---------- Shared ----------
    @staticmethod
    def _clean(record_type, values: dict) -> dict:
        allowed = set(field_names(record_type)) - {"id"}
        unknown = set(values) - allowed
        if unknown:
            raise ValidationError(f"Unknown {record_type.__name__.lower()} fields: {', '.join(sorted(unknown))}")
        return {k: str(v or "").strip() for k, v in values.items()}

    def _get(self, collection: str, record_id: str, missing: str):
        record = self.store.find(collection, record_id)
        if not record:
            raise NotFoundError(missing)
        return record

    def _add(self, cls, collection: str, name: str, fields: dict):
        values = self._clean(cls, {"name": name, **fields})
        if not values["name"]:
            raise ValidationError("Name is required.")
        with self.store.transaction() as uow:
            record = cls(id=self.store.new_id(collection), **values)
            uow.put(record)
        log.info("%s_created id=%s", cls.__name__.lower(), record.id)
        return record

    def _update(self, cls, collection: str, record_id: str, changes: dict, missing: str):
        values = self._clean(cls, changes)
        if "name" in values and not values["name"]:
            raise ValidationError("Name is required.")
        with self.store.transaction() as uow:
            current = self._get(collection, record_id, missing)
            updated = replace(current, **values)
            uow.put(updated)
        return updated

    def _delete(self, collection: str, record_id: str, missing: str) -> None:
        with self.store.transaction() as uow:
            self._get(collection, record_id, missing)
            uow.remove(collection, record_id)

    @staticmethod
    def _search(records: list, term: str) -> list:
        needle = (term or "").strip().lower()
        if not needle:
            return records
        return [
            r for r in records
            if needle in r.name.lower() or needle in r.email.lower() or needle in r.phone.lower()
        ]
