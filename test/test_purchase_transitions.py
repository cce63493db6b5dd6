from pathlib import Path

import pytest
from conftest import make_store

from invpro.domain.errors import NotFoundError, ValidationError
from invpro.domain.ledger import Movement
from invpro.services.inventory_service import InventoryService
from invpro.services.purchase_service import PurchaseService


def _setup(tmp_path: Path, stock: int = 5):
    store = make_store(tmp_path)
    inv = InventoryService(store)
    purchases = PurchaseService(store)
    product = inv.add_product("Widget", purchase_price=2.0, sales_price=5.0, in_stock=stock)
    return store, purchases, product


def test_pending_then_received_adds_quantity_exactly_once(tmp_path: Path):
    store, purchases, product = _setup(tmp_path)

    created = purchases.add_purchase("sup-1", product.id, quantity=10, unit_price=2.0, date="2024-05-01")
    assert created.movement is Movement.NONE
    assert store.get_product(product.id).in_stock == 5

    first = purchases.update_purchase(created.order.id, status="received")
    assert first.movement is Movement.REALIZE
    assert store.get_product(product.id).in_stock == 15

    again = purchases.update_purchase(created.order.id, status="received")
    assert again.movement is Movement.NONE
    assert again.adjustments == ()
    assert store.get_product(product.id).in_stock == 15


def test_purchase_created_received_moves_stock_and_value(tmp_path: Path):
    store, purchases, product = _setup(tmp_path)

    commit = purchases.add_purchase("sup-1", product.id, quantity=3, unit_price=4.0, status="received")

    updated = store.get_product(product.id)
    assert commit.order.total_amount == pytest.approx(12.0)
    assert updated.in_stock == 8
    assert updated.value_on_hand == pytest.approx(updated.purchase_price * updated.in_stock)


def test_cancel_then_receive_again_nets_to_zero(tmp_path: Path):
    store, purchases, product = _setup(tmp_path)
    po = purchases.add_purchase("sup-1", product.id, quantity=4, unit_price=2.0, status="received").order
    assert store.get_product(product.id).in_stock == 9

    purchases.update_purchase(po.id, status="cancelled")
    assert store.get_product(product.id).in_stock == 5

    purchases.update_purchase(po.id, status="received")
    assert store.get_product(product.id).in_stock == 9


def test_pending_to_cancelled_has_no_stock_effect(tmp_path: Path):
    store, purchases, product = _setup(tmp_path)
    po = purchases.add_purchase("sup-1", product.id, quantity=4, unit_price=2.0).order

    commit = purchases.update_purchase(po.id, status="cancelled")

    assert commit.movement is Movement.NONE
    assert store.get_product(product.id).in_stock == 5


def test_total_amount_is_not_recomputed_on_edit(tmp_path: Path):
    _store, purchases, product = _setup(tmp_path)
    po = purchases.add_purchase("sup-1", product.id, quantity=2, unit_price=3.0).order

    updated = purchases.update_purchase(po.id, quantity=5).order

    assert updated.quantity == 5
    assert updated.total_amount == pytest.approx(6.0)


def test_reversal_uses_the_merged_quantity(tmp_path: Path):
    store, purchases, product = _setup(tmp_path, stock=0)
    po = purchases.add_purchase("sup-1", product.id, quantity=10, unit_price=1.0, status="received").order
    assert store.get_product(product.id).in_stock == 10

    purchases.update_purchase(po.id, quantity=4, status="pending")

    assert store.get_product(product.id).in_stock == 6


def test_received_purchase_for_unknown_product_is_skipped(tmp_path: Path):
    store, purchases, _product = _setup(tmp_path)

    commit = purchases.add_purchase("sup-1", "missing", quantity=1, unit_price=1.0, status="received")

    assert commit.adjustments[0].outcome.value == "skipped_missing_reference"
    assert store.get_purchase(commit.order.id) is not None


def test_purchase_validation(tmp_path: Path):
    _store, purchases, product = _setup(tmp_path)

    with pytest.raises(ValidationError, match="Qty must be >= 1"):
        purchases.add_purchase("sup-1", product.id, quantity=0, unit_price=1.0)
    with pytest.raises(ValidationError, match="Invalid purchase status"):
        purchases.add_purchase("sup-1", product.id, quantity=1, unit_price=1.0, status="completed")
    with pytest.raises(ValidationError, match="Unknown purchase fields"):
        purchases.update_purchase("whatever", id="x")
    with pytest.raises(NotFoundError):
        purchases.update_purchase("nope", status="received")


def test_filter_purchases_by_status_and_party(tmp_path: Path):
    store, purchases, product = _setup(tmp_path)
    a = purchases.add_purchase("sup-1", product.id, quantity=1, unit_price=1.0).order
    b = purchases.add_purchase("sup-1", product.id, quantity=1, unit_price=1.0, status="received").order

    assert [p.id for p in purchases.filter_purchases(status="received")] == [b.id]
    assert {p.id for p in purchases.filter_purchases("widget")} == {a.id, b.id}
    assert purchases.filter_purchases("no-such-thing") == []


def test_fractional_quantity_is_rejected(tmp_path: Path):
    store, purchases, product = _setup(tmp_path)

    with pytest.raises(ValidationError, match="whole number"):
        purchases.add_purchase("sup-1", product.id, quantity=2.7, unit_price=1.0, status="received")

    assert store.get_product(product.id).in_stock == 5
    assert purchases.list_purchases() == []
