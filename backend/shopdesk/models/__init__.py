from .catalog import Product, StockMovement
from .purchasing import Vendor, PurchaseReceipt, PurchaseReceiptLine
from .staff import Worker
from .sales import SalesReceipt, SalesReceiptLine, LegacySale, Return
from .auth import AdminUser, SessionToken, EmailVerification

__all__ = [
    'Product', 'StockMovement',
    'Vendor', 'PurchaseReceipt', 'PurchaseReceiptLine',
    'Worker',
    'SalesReceipt', 'SalesReceiptLine', 'LegacySale', 'Return',
    'AdminUser', 'SessionToken', 'EmailVerification',
]
