from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from app.core.enums import RuleScope, TimeUnit


class BreakdownEntry(BaseModel):
    unit: TimeUnit
    quantity: int = Field(ge=1)
    rate: Decimal
    cost: Decimal
    rule_id: Optional[int] = None
    source: Optional[RuleScope] = None


class ResolvedRule(BaseModel):
    id: int
    unit: TimeUnit
    rate: Decimal
    specificity: int
    source: RuleScope
    pricelist: str


class Quote(BaseModel):
    product_id: int
    product_name: str
    start: datetime
    end: datetime
    duration_hours: Decimal
    billable_hours: int
    billable_days: int
    breakdown: List[BreakdownEntry]
    subtotal: Decimal
    deposit: Decimal
    total: Decimal
    uncovered_hours: Decimal = Decimal("0")
    best_rules: List[ResolvedRule] = []
    computed_at: datetime


class RuleOut(BaseModel):
    id: int
    unit: TimeUnit
    rate: Decimal
    min_duration: Optional[int] = None
    max_duration: Optional[int] = None
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    source: RuleScope
    specificity: int
    pricelist: str
    valid_now: bool


class ProductRulesOut(BaseModel):
    product_id: int
    product_name: str
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    rules: List[RuleOut]
