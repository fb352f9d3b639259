"""
Personalization Domain Models
"""
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field, field_validator

from smartstore.domain.common import DomainModel


class InteractionType(str, Enum):
    VIEW = "view"
    CLICK = "click"
    ADD_TO_CART = "add_to_cart"
    PURCHASE = "purchase"
    LIKE = "like"


class InteractionCreate(BaseModel):
    customer_id: int
    product_id: int
    type: InteractionType


class ExperimentVariant(BaseModel):
    id: str
    name: str
    traffic_allocation: int = Field(..., ge=0, le=100)
    config: Dict[str, Any] = Field(default_factory=dict)


class ExperimentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    type: str = "recommendation"
    status: str = Field("draft", pattern=r"^(draft|running|paused|completed)$")
    variants: List[ExperimentVariant] = Field(..., min_length=1)

    @field_validator("variants")
    @classmethod
    def allocation_sums_to_100(cls, variants: List[ExperimentVariant]) -> List[ExperimentVariant]:
        total = sum(v.traffic_allocation for v in variants)
        if total != 100:
            raise ValueError(f"Variant traffic allocation must sum to 100, got {total}")
        return variants


class Experiment(DomainModel):
    id: int
    name: str
    description: Optional[str] = None
    type: str
    status: str
    variants: List[Dict[str, Any]]
    created_at: datetime


class Interaction(DomainModel):
    id: int
    customer_id: int
    product_id: int
    interaction_type: str
    created_at: datetime


class VariantAssignment(BaseModel):
    experiment_id: int
    customer_id: int
    bucket: int
    variant: Dict[str, Any]
