"""
harvester/schemas.py

Response schemas for the catalog range endpoint.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from harvester.types import Product, QueryResult


class ProductPayload(BaseModel):
    """
    One product entry as returned by the catalog API.
    """

    id: int
    name: str
    price: float

    def to_product(self) -> Product:
        return Product(id=self.id, name=self.name, price=self.price)


class CatalogPagePayload(BaseModel):
    """
    Catalog response body for one price range query.

    `total` is the number of products matching the range, `count` the number
    returned in this page.
    """

    total: int = Field(..., ge=0)
    count: int = Field(0, ge=0)
    products: list[ProductPayload] = Field(default_factory=list)

    def to_query_result(self) -> QueryResult:
        return QueryResult(
            match_count=self.total,
            products=[item.to_product() for item in self.products],
        )
