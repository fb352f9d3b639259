"""
Shared pieces for the domain (pydantic) models
"""
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer


# Decimal in Python, float in JSON
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class DomainModel(BaseModel):
    """Read model built from ORM rows"""

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        """JSON-ready dict (Decimal -> float, datetime -> ISO string)"""
        return self.model_dump(mode="json")
