from pydantic import BaseModel


class Product(BaseModel):
    id: int
    name: str
    price: float
    description: str
    category: str
    image: str
    images: list[str] = []
    stock: int
