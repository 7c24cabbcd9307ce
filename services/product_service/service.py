import re

from .catalog import PRODUCTS
from .schemas import Product


def _words(text: str) -> set[str]:
    # "Magnetic Frag Rack [Large]" -> {"magnetic", "frag", "rack", "large"}
    return set(re.findall(r"\w+", text.lower()))


class ProductService:

    @staticmethod
    def list_products(category: str | None = None, query: str | None = None) -> list[Product]:
        products = list(PRODUCTS)

        if category:
            products = [p for p in products if p.category == category]

        if query:
            query_words = _words(query)
            filtered = []

            for p in products:
                name_words = _words(p.name)
                if query_words & name_words:
                    filtered.append(p)

            products = filtered

        return products

    @staticmethod
    def get_product_by_id(product_id: int) -> Product | None:
        return next((p for p in PRODUCTS if p.id == product_id), None)

    @staticmethod
    def get_product_images(product: Product) -> list[str]:
        if product.images:
            return product.images
        return [product.image]

    @staticmethod
    def get_recommended_products(product_id: int, limit: int = 4) -> list[Product]:
        current = ProductService.get_product_by_id(product_id)
        if not current:
            return []

        same_category = ProductService.list_products(category=current.category)
        return [p for p in same_category if p.id != product_id][:limit]
