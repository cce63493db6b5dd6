from pathlib import Path

import pytest
from conftest import make_store

from invpro.domain.errors import NotFoundError, ValidationError
from invpro.domain.models import BusinessInfo
from invpro.services.business_service import BusinessService
from invpro.services.contacts_service import ContactsService
from invpro.services.inventory_service import InventoryService


def test_value_on_hand_follows_cost_and_stock(tmp_path: Path):
    store = make_store(tmp_path)
    inv = InventoryService(store)

    p = inv.add_product("Widget", purchase_price=2.5, sales_price=5.0, in_stock=4, upc="0001")
    assert p.value_on_hand == pytest.approx(10.0)

    p = inv.update_product(p.id, purchase_price=3.0)
    assert p.value_on_hand == pytest.approx(12.0)

    p = inv.update_product(p.id, in_stock=10)
    assert p.value_on_hand == pytest.approx(30.0)

    for product in store.products():
        assert product.value_on_hand == pytest.approx(product.purchase_price * product.in_stock)


def test_value_on_hand_cannot_be_set_directly(tmp_path: Path):
    inv = InventoryService(make_store(tmp_path))
    p = inv.add_product("Widget", purchase_price=2.5, sales_price=5.0, in_stock=4)

    with pytest.raises(ValidationError, match="derived"):
        inv.update_product(p.id, value_on_hand=999.0)


def test_product_validation_and_missing_ids(tmp_path: Path):
    inv = InventoryService(make_store(tmp_path))

    with pytest.raises(ValidationError, match="Name is required"):
        inv.add_product("  ", purchase_price=1.0, sales_price=1.0)
    with pytest.raises(ValidationError, match="Stock must be >= 0"):
        inv.add_product("Widget", purchase_price=1.0, sales_price=1.0, in_stock=-1)
    with pytest.raises(ValidationError, match="Purchase price"):
        inv.add_product("Widget", purchase_price=-1.0, sales_price=1.0)
    with pytest.raises(NotFoundError):
        inv.update_product("missing", name="x")
    with pytest.raises(NotFoundError):
        inv.delete_product("missing")


def test_product_update_is_persisted(tmp_path: Path):
    inv = InventoryService(make_store(tmp_path))
    p = inv.add_product("Widget", purchase_price=1.0, sales_price=1.0, in_stock=2)
    inv.update_product(p.id, sales_price=4.0, description="Blue")

    reloaded = make_store(tmp_path).get_product(p.id)

    assert reloaded.sales_price == 4.0
    assert reloaded.description == "Blue"


def test_search_and_low_stock(tmp_path: Path):
    inv = InventoryService(make_store(tmp_path))
    a = inv.add_product("Wireless Headphones", purchase_price=1.0, sales_price=2.0, in_stock=25, upc="123")
    b = inv.add_product("Case", purchase_price=1.0, sales_price=2.0, in_stock=3, description="Fits wireless phones")

    assert {p.id for p in inv.search_products("WIRELESS")} == {a.id, b.id}
    assert [p.id for p in inv.search_products("123")] == [a.id]
    assert [p.id for p in inv.low_stock(10)] == [b.id]


def test_customer_and_supplier_crud(tmp_path: Path):
    contacts = ContactsService(make_store(tmp_path))

    c = contacts.add_customer("John Smith", email="john@example.com", phone="(555) 123-4567", city="New York")
    s = contacts.add_supplier("Tech Distributors", email="orders@techdist.com")

    assert contacts.update_customer(c.id, city="Boston").city == "Boston"
    assert [x.id for x in contacts.search_customers("555")] == [c.id]
    assert [x.id for x in contacts.search_suppliers("TECH")] == [s.id]

    contacts.delete_customer(c.id)
    assert contacts.list_customers() == []
    with pytest.raises(NotFoundError):
        contacts.get_customer(c.id)
    with pytest.raises(ValidationError, match="Unknown supplier fields"):
        contacts.update_supplier(s.id, fax="123")


def test_business_info_is_replaced_wholesale(tmp_path: Path):
    store = make_store(tmp_path)
    business = BusinessService(store)

    assert business.get_business_info().name == "Your Business Name"

    business.update_business_info({"name": "Acme", "tax_id": "99-123", "city": "Austin"})
    business.update_business_info({"name": "Acme Two"})

    info = make_store(tmp_path).business_info()
    assert info == BusinessInfo(name="Acme Two")


def test_business_info_requires_name(tmp_path: Path):
    business = BusinessService(make_store(tmp_path))
    with pytest.raises(ValidationError):
        business.update_business_info(BusinessInfo(name=" "))


def test_fractional_stock_is_rejected(tmp_path: Path):
    inv = InventoryService(make_store(tmp_path))

    with pytest.raises(ValidationError, match="whole number"):
        inv.add_product("Widget", purchase_price=1.0, sales_price=1.0, in_stock=2.7)

    p = inv.add_product("Widget", purchase_price=1.0, sales_price=1.0, in_stock="3.0")
    assert p.in_stock == 3
    with pytest.raises(ValidationError, match="whole number"):
        inv.update_product(p.id, in_stock=0.5)
    assert inv.get_product(p.id).in_stock == 3
