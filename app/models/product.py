from sqlalchemy import Column, String, Text, Boolean, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from app.models.base import BaseModel


class Product(BaseModel):
    __tablename__ = "products"
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    sku = Column(String(64), unique=True, nullable=True)
    category_id = Column(ForeignKey("categories.id"), nullable=True)
    category = relationship("Category", backref="products")
    is_active = Column(Boolean, default=True, nullable=False)
    is_rentable = Column(Boolean, default=True, nullable=False)
    # Flat amount, added once per quote
    daily_deposit = Column(Numeric(10, 2), nullable=True)
