"""Shop models."""

from shop.models.category import Category
from shop.models.image import Image
from shop.models.product import Product, category_product
from shop.models.product_view import ProductView
from shop.models.review import Review
from shop.models.supplier import Supplier

__all__ = [
    "Category",
    "Image",
    "Product",
    "ProductView",
    "Review",
    "Supplier",
    "category_product",
]
