# Models
from .store import Store
from .category import Category
from .product import Product, ProductPhoto
from .address import ShippingAddress
from .product_snapshot import ProductSnapshot
from .order import Order, LineItem

__all__ = [
    "Store",
    "Category",
    "Product",
    "ProductPhoto",
    "ShippingAddress",
    "ProductSnapshot",
    "Order",
    "LineItem",
]
