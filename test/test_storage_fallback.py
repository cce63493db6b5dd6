import logging
from pathlib import Path

import pytest
import requests

from invpro.application.store import InventoryStore
from invpro.domain.errors import PersistenceUnavailableError
from invpro.domain.models import BusinessInfo, SaleItem, SaleOrder
from invpro.repositories.contracts import Changeset
from invpro.repositories.fallback_repo import FallbackRepository
from invpro.repositories.remote_repo import RemoteRepository
from invpro.repositories.sqlite_repo import SqliteRepository
from invpro.services.contacts_service import ContactsService
from invpro.services.inventory_service import InventoryService
from invpro.services.purchase_service import PurchaseService


class FakeResponse:
    def __init__(self, status: int = 200, payload=None):
        self.status_code = status
        self._payload = payload
        self.content = b"" if payload is None else b"{}"

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload


class RecordingSession:
    def __init__(self, responses=None):
        self.calls = []
        self.responses = responses or {}

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        return self.responses.get((method, url.rsplit("/", 1)[-1]), FakeResponse())


def _local(tmp_path: Path) -> SqliteRepository:
    repo = SqliteRepository(tmp_path / "local.db")
    repo.init_db()
    return repo


def test_remote_failure_falls_back_to_local_store(tmp_path: Path, caplog):
    local = _local(tmp_path)
    remote = RemoteRepository("https://example.supabase.co", "key")

    def fail(*_args, **_kwargs):
        raise PersistenceUnavailableError("network down")

    remote._request = fail  # type: ignore[method-assign]

    store = InventoryStore(FallbackRepository(local, remote))
    with caplog.at_level(logging.WARNING, logger="invpro.storage"):
        store.load()
        p = InventoryService(store).add_product("Widget", purchase_price=1.0, sales_price=2.0, in_stock=3)

    assert any("remote_commit_failed" in r.getMessage() for r in caplog.records)
    assert any("remote_load_failed" in r.getMessage() for r in caplog.records)
    assert local.load_state().products[0].id == p.id


def test_http_errors_become_persistence_unavailable():
    session = RecordingSession({("GET", "products"): FakeResponse(status=503)})
    remote = RemoteRepository("https://example.supabase.co/", "key", session=session)

    with pytest.raises(PersistenceUnavailableError, match="GET products"):
        remote.load_state()


def test_remote_commit_upserts_rows_and_deletes_by_id():
    session = RecordingSession()
    remote = RemoteRepository("https://example.supabase.co/", "secret", session=session)

    changes = Changeset()
    changes.put(SaleOrder("s1", "c1", (SaleItem("p1", 2, 3.0),), 6.0, "2024-02-02", "completed"))
    changes.remove("products", "p9")
    changes.business_info = BusinessInfo(name="Shop")
    remote.commit(changes)

    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "https://example.supabase.co/rest/v1/sales")
    row = kwargs["json"][0]
    assert row["id"] == "s1"
    assert [dict(it) for it in row["items"]] == [{"product_id": "p1", "quantity": 2, "unit_price": 3.0}]
    assert kwargs["headers"]["apikey"] == "secret"
    assert "merge-duplicates" in kwargs["headers"]["Prefer"]

    method, url, kwargs = session.calls[1]
    assert (method, url, kwargs["params"]) == ("DELETE", "https://example.supabase.co/rest/v1/products", {"id": "eq.p9"})

    method, url, kwargs = session.calls[2]
    assert url.endswith("/business_info")
    assert kwargs["json"][0]["id"] == 1
    assert kwargs["json"][0]["name"] == "Shop"


def test_remote_load_builds_records():
    session = RecordingSession({
        ("GET", "sales"): FakeResponse(payload=[{
            "id": "s1", "customer_id": "c1", "total_amount": 6.0, "date": "2024-02-02",
            "status": "pending", "created_at": "ignored",
            "items": [{"product_id": "p1", "quantity": 2, "unit_price": 3.0}],
        }]),
        ("GET", "business_info"): FakeResponse(payload=[{"id": 1, "name": "Remote Shop"}]),
    })
    remote = RemoteRepository("https://example.supabase.co", "key", session=session)

    state = remote.load_state()

    assert state.sales[0].items == (SaleItem("p1", 2, 3.0),)
    assert state.business_info.name == "Remote Shop"
    assert state.products == []


def test_without_remote_the_local_store_is_used(tmp_path: Path):
    local = _local(tmp_path)
    repo = FallbackRepository(local)

    changes = Changeset()
    changes.business_info = BusinessInfo(name="Local Shop")
    repo.commit(changes)

    assert repo.load_state().business_info.name == "Local Shop"


class TableSession:
    """In-memory PostgREST tables; ``failing`` holds (method, table) pairs answered with 503."""

    def __init__(self):
        self.tables: dict[str, dict] = {}
        self.failing: set[tuple[str, str]] = set()

    def request(self, method, url, params=None, json=None, **kwargs):
        table = url.rsplit("/", 1)[-1]
        if (method, table) in self.failing:
            return FakeResponse(status=503)
        rows = self.tables.setdefault(table, {})
        if method == "GET":
            return FakeResponse(payload=[dict(r) for r in rows.values()])
        if method == "POST":
            for row in json:
                rows[row["id"]] = dict(row)
        elif method == "DELETE":
            rows.pop(params["id"][len("eq."):], None)
        return FakeResponse()


def _remote_store(tmp_path: Path, session: TableSession):
    local = SqliteRepository(tmp_path / "local.db")
    local.init_db()
    remote = RemoteRepository("https://example.supabase.co", "key", session=session)
    store = InventoryStore(FallbackRepository(local, remote))
    store.load()
    return store, local


def test_partial_remote_commit_is_replayed_before_next_read(tmp_path: Path):
    session = TableSession()
    store, local = _remote_store(tmp_path, session)
    p = InventoryService(store).add_product("Widget", purchase_price=1.0, sales_price=2.0, in_stock=1)

    session.failing.add(("POST", "products"))
    po = PurchaseService(store).add_purchase("sup-1", p.id, quantity=5, unit_price=1.0, status="received").order
    assert store.get_product(p.id).in_stock == 6
    # the remote took the order but not the stock change
    assert session.tables["products"][p.id]["in_stock"] == 1
    assert len(local.pending_remote()) == 1

    session.failing.clear()
    reloaded, _ = _remote_store(tmp_path, session)

    assert reloaded.get_purchase(po.id).status == "received"
    assert reloaded.get_product(p.id).in_stock == 6
    assert session.tables["products"][p.id]["in_stock"] == 6
    assert local.pending_remote() == []


def test_unreplayable_outbox_reads_the_local_store(tmp_path: Path):
    session = TableSession()
    store, local = _remote_store(tmp_path, session)
    p = InventoryService(store).add_product("Widget", purchase_price=1.0, sales_price=2.0, in_stock=1)

    session.failing.add(("POST", "products"))
    PurchaseService(store).add_purchase("sup-1", p.id, quantity=5, unit_price=1.0, status="received")

    reloaded, _ = _remote_store(tmp_path, session)

    assert reloaded.get_product(p.id).in_stock == 6
    assert len(local.pending_remote()) == 1


def test_successful_remote_commit_is_mirrored_locally(tmp_path: Path):
    session = TableSession()
    store, local = _remote_store(tmp_path, session)

    p = InventoryService(store).add_product("Widget", purchase_price=1.0, sales_price=2.0, in_stock=3)

    assert session.tables["products"][p.id]["name"] == "Widget"
    assert local.load_state().products[0].id == p.id
    assert local.pending_remote() == []


def test_remote_rows_are_normalized_on_load(tmp_path: Path):
    session = RecordingSession({
        ("GET", "products"): FakeResponse(payload=[{
            "id": "p1", "upc": None, "name": "Widget", "description": None, "picture": None,
            "purchase_price": 2.5, "sales_price": 5, "in_stock": 4, "value_on_hand": 999.0,
            "supplier_id": None,
        }]),
        ("GET", "customers"): FakeResponse(payload=[{"id": "c1", "name": "Ann", "email": None, "phone": None}]),
    })
    remote = RemoteRepository("https://example.supabase.co", "key", session=session)
    store = InventoryStore(FallbackRepository(_local(tmp_path), remote))
    store.load()

    product = store.get_product("p1")
    assert product.value_on_hand == pytest.approx(10.0)
    assert product.description == ""
    assert product.supplier_id is None
    assert [c.id for c in ContactsService(store).search_customers("ann")] == ["c1"]
    assert ContactsService(store).search_customers("555") == []
