"""Shared pydantic plumbing for backend wire models"""

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, PlainSerializer
from pydantic.alias_generators import to_camel

# Money travels as a JSON number but is held as Decimal on the client
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class WireModel(BaseModel):
    """Model whose JSON form uses camelCase keys"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"

    def to_wire(self) -> dict:
        """Serialize with backend field names"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
