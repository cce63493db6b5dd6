from .inventory_service import InventoryService
from .contacts_service import ContactsService
from .purchase_service import PurchaseService
from .sales_service import SalesService
from .business_service import BusinessService
from .reporting_service import ReportingService
from .invoice_service import InvoiceService

__all__ = [
    "InventoryService",
    "ContactsService",
    "PurchaseService",
    "SalesService",
    "BusinessService",
    "ReportingService",
    "InvoiceService",
]
