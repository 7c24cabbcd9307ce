from fastapi import APIRouter, Query

from shared.errors import NotFoundError
from .schemas import Product
from .service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=list[Product])
async def list_products(
    category: str | None = Query(default=None),
    query: str | None = Query(default=None),
):
    return ProductService.list_products(category=category, query=query)


@router.get("/{product_id}", response_model=Product)
async def get_product(product_id: int):
    product = ProductService.get_product_by_id(product_id)
    if not product:
        raise NotFoundError("Product not found")
    return product


@router.get("/{product_id}/images", response_model=list[str])
async def get_product_images(product_id: int):
    product = ProductService.get_product_by_id(product_id)
    if not product:
        raise NotFoundError("Product not found")
    return ProductService.get_product_images(product)


@router.get("/{product_id}/recommendations", response_model=list[Product])
async def get_recommendations(product_id: int, limit: int = Query(default=4, ge=1, le=20)):
    if not ProductService.get_product_by_id(product_id):
        raise NotFoundError("Product not found")
    return ProductService.get_recommended_products(product_id, limit)
