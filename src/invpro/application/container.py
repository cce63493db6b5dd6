from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from invpro.application.seed import seed_demo_data
from invpro.application.store import InventoryStore
from invpro.config import AppSettings
from invpro.repositories.fallback_repo import FallbackRepository
from invpro.repositories.remote_repo import RemoteRepository
from invpro.repositories.sqlite_repo import SqliteRepository
from invpro.services.business_service import BusinessService
from invpro.services.contacts_service import ContactsService
from invpro.services.inventory_service import InventoryService
from invpro.services.invoice_service import InvoiceService
from invpro.services.purchase_service import PurchaseService
from invpro.services.reporting_service import ReportingService
from invpro.services.sales_service import SalesService


@dataclass(frozen=True)
class AppContainer:
    store: InventoryStore
    inventory: InventoryService
    contacts: ContactsService
    purchases: PurchaseService
    sales: SalesService
    business: BusinessService
    reporting: ReportingService
    invoices: InvoiceService


def build_container(db_path: Path | str, settings: Optional[AppSettings] = None) -> AppContainer:
    settings = settings or AppSettings()

    local = SqliteRepository(db_path)
    local.init_db()
    remote = None
    if settings.remote_enabled:
        remote = RemoteRepository(settings.remote_url, settings.remote_key, timeout=settings.remote_timeout)

    store = InventoryStore(FallbackRepository(local, remote))
    store.load()
    if settings.seed_demo:
        seed_demo_data(store)

    return AppContainer(
        store=store,
        inventory=InventoryService(store),
        contacts=ContactsService(store),
        purchases=PurchaseService(store),
        sales=SalesService(store),
        business=BusinessService(store),
        reporting=ReportingService(store, low_stock_threshold=settings.low_stock_threshold),
        invoices=InvoiceService(store, tax_rate=settings.tax_rate),
    )
