"""Product models for the mock backend"""

from typing import Optional

from pydantic import Field

from .base import ApiModel


class Product(ApiModel):
    """Product in the catalog"""
    id: str
    name: str
    description: str = ""
    price: float = Field(gt=0)
    discounted_price: Optional[float] = None
    category_id: str
    stock: int = Field(ge=0, default=100)

    @property
    def unit_price(self) -> float:
        return self.discounted_price if self.discounted_price is not None else self.price
