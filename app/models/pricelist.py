from sqlalchemy import Column, String, Text, Boolean, Integer, Numeric, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from app.models.base import BaseModel
from app.core.enums import TimeUnit


class Pricelist(BaseModel):
    __tablename__ = "pricelists"
    name = Column(String(120), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)


class PricelistItem(BaseModel):
    """A rate for one time unit, scoped to a product, a category, or nothing (default)."""
    __tablename__ = "pricelist_items"
    __table_args__ = (
        CheckConstraint("rate > 0", name="ck_pricelist_items_rate_positive"),
        CheckConstraint(
            "product_id IS NULL OR category_id IS NULL",
            name="ck_pricelist_items_single_scope",
        ),
    )

    pricelist_id = Column(ForeignKey("pricelists.id"), nullable=False)
    product_id = Column(ForeignKey("products.id"), nullable=True, index=True)
    category_id = Column(ForeignKey("categories.id"), nullable=True, index=True)

    pricelist = relationship("Pricelist", backref="items")
    product = relationship("Product", backref="pricelist_items")
    category = relationship("Category", backref="pricelist_items")

    unit = Column(Enum(TimeUnit), nullable=False)
    rate = Column(Numeric(10, 2), nullable=False)
    min_duration = Column(Integer, nullable=True)
    max_duration = Column(Integer, nullable=True)
    valid_from = Column(DateTime(timezone=True), nullable=True)
    valid_to = Column(DateTime(timezone=True), nullable=True)
