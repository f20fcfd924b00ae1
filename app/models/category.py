from sqlalchemy import Column, String, Text
from app.models.base import BaseModel


class Category(BaseModel):
    __tablename__ = "categories"
    name = Column(String(120), unique=True, nullable=False)
    description = Column(Text, nullable=True)
