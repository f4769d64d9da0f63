from typing import Any
from typing_extensions import TypedDict


class ProductFields(TypedDict):
    name: str
    expiration_date: str       # "YYYY-MM-DD"


class Product(ProductFields):
    id: Any                    # assigned by the store, opaque to the service


def product_names(products: list[Product]) -> list[str]:
    return [p["name"] for p in products]
