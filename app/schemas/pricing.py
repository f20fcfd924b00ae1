"""Immutable catalog snapshots read at quote time"""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.enums import RuleScope, TimeUnit
from app.utils.dates import as_utc


class ProductScope(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["product"] = "product"
    product_id: int

    @property
    def specificity(self) -> int:
        return 3

    def matches(self, product_id: int, category_id: Optional[int]) -> bool:
        return self.product_id == product_id


class CategoryScope(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["category"] = "category"
    category_id: int

    @property
    def specificity(self) -> int:
        return 2

    def matches(self, product_id: int, category_id: Optional[int]) -> bool:
        return category_id is not None and self.category_id == category_id


class DefaultScope(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["default"] = "default"

    @property
    def specificity(self) -> int:
        return 1

    def matches(self, product_id: int, category_id: Optional[int]) -> bool:
        return True


Scope = Annotated[
    Union[ProductScope, CategoryScope, DefaultScope],
    Field(discriminator="kind"),
]


class PriceRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    unit: TimeUnit
    rate: Decimal = Field(gt=0)
    scope: Scope = Field(default_factory=DefaultScope)
    # None and 0 both mean "unconstrained"
    min_duration: Optional[int] = Field(default=None, ge=0)
    max_duration: Optional[int] = Field(default=None, ge=0)
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    pricelist_name: str = ""
    pricelist_active: bool = True

    @field_validator("valid_from", "valid_to")
    @classmethod
    def _naive_bounds_are_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @property
    def specificity(self) -> int:
        return self.scope.specificity

    @property
    def source(self) -> RuleScope:
        return RuleScope(self.scope.kind)

    def is_valid_at(self, now: datetime) -> bool:
        if self.valid_from is not None and self.valid_from > now:
            return False
        if self.valid_to is not None and self.valid_to < now:
            return False
        return True

    def applies_at(self, now: datetime) -> bool:
        return self.pricelist_active and self.is_valid_at(now)


class ProductView(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str = ""
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    is_active: bool = True
    is_rentable: bool = True
    daily_deposit: Optional[Decimal] = None

    @property
    def is_available(self) -> bool:
        return self.is_active and self.is_rentable
