from .inventory import Product, Supplier, SupplierOrder, SupplierOrderItem
from .sales import Sale, SaleLine
from .registers import RegisterClosing
from .promotions import Promotion, PromotionItem
from .settings import ConfigEntry
from .licensing import License
from .audit import OperationLogEntry

__all__ = [
    'Product', 'Supplier', 'SupplierOrder', 'SupplierOrderItem',
    'Sale', 'SaleLine',
    'RegisterClosing',
    'Promotion', 'PromotionItem',
    'ConfigEntry',
    'License',
    'OperationLogEntry',
]
