from .inventory import Product, ProductInventory
from .sales import Sale, SaleItem
from .documents import Return, ReturnItem
from .accounting import Expense, Purchase

__all__ = [
    'Product', 'ProductInventory',
    'Sale', 'SaleItem',
    'Return', 'ReturnItem',
    'Expense', 'Purchase',
]
