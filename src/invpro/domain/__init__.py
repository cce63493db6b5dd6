from .models import Product, Customer, Supplier, PurchaseOrder, SaleItem, SaleOrder, BusinessInfo
from .errors import ValidationError, NotFoundError, PersistenceUnavailableError

__all__ = [
    "Product",
    "Customer",
    "Supplier",
    "PurchaseOrder",
    "SaleItem",
    "SaleOrder",
    "BusinessInfo",
    "ValidationError",
    "NotFoundError",
    "PersistenceUnavailableError",
]
