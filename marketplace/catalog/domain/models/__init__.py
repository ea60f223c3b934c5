from .catalog import Category, Product, ProductReview


__all__ = [
    "Category",
    "Product",
    "ProductReview",
]
