from __future__ import annotations

import logging

from invpro.application.store import InventoryStore
from invpro.domain.ledger import revalue
from invpro.domain.models import Customer, Product, Supplier

log = logging.getLogger(__name__)

DEMO_PRODUCTS = [
    Product(
        id="1",
        upc="123456789012",
        name="Wireless Headphones",
        description="High-quality wireless headphones with noise cancellation",
        picture="https://images.pexels.com/photos/205926/pexels-photo-205926.jpeg?auto=compress&cs=tinysrgb&w=400",
        purchase_price=45.00,
        sales_price=89.99,
        in_stock=25,
        value_on_hand=0.0,
    ),
    Product(
        id="2",
        upc="234567890123",
        name="Smartphone Case",
        description="Durable protective case for smartphones",
        picture="https://images.pexels.com/photos/341523/pexels-photo-341523.jpeg?auto=compress&cs=tinysrgb&w=400",
        purchase_price=8.50,
        sales_price=19.99,
        in_stock=150,
        value_on_hand=0.0,
    ),
    Product(
        id="3",
        upc="345678901234",
        name="Bluetooth Speaker",
        description="Portable Bluetooth speaker with excellent sound quality",
        picture="https://images.pexels.com/photos/1649771/pexels-photo-1649771.jpeg?auto=compress&cs=tinysrgb&w=400",
        purchase_price=25.00,
        sales_price=49.99,
        in_stock=40,
        value_on_hand=0.0,
    ),
]

DEMO_CUSTOMERS = [
    Customer("1", "John Smith", "john.smith@email.com", "(555) 123-4567", "123 Main St", "New York", "NY", "10001"),
    Customer("2", "Sarah Johnson", "sarah.johnson@email.com", "(555) 234-5678", "456 Oak Ave", "Los Angeles", "CA", "90210"),
]

DEMO_SUPPLIERS = [
    Supplier("1", "Tech Distributors Inc", "orders@techdist.com", "(555) 987-6543", "789 Industrial Blvd", "Chicago", "IL", "60601"),
    Supplier("2", "Global Electronics Supply", "sales@globales.com", "(555) 876-5432", "321 Commerce St", "Atlanta", "GA", "30309"),
]


def seed_demo_data(store: InventoryStore) -> int:
    """Fill empty catalog collections with the demo records.

    Each of products, customers and suppliers is seeded independently, only
    when it is empty. Orders are never seeded. Returns the records written.
    """
    seeded = 0
    with store.transaction() as uow:
        if not store.products():
            for p in DEMO_PRODUCTS:
                uow.put(revalue(p))
                seeded += 1
        if not store.customers():
            for c in DEMO_CUSTOMERS:
                uow.put(c)
                seeded += 1
        if not store.suppliers():
            for s in DEMO_SUPPLIERS:
                uow.put(s)
                seeded += 1
    if seeded:
        log.info("demo_data_seeded records=%s", seeded)
    return seeded
