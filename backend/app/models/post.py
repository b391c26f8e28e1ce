"""
Post model for marketplace listings
"""

from sqlalchemy import Column, Integer, ForeignKey, String, Float
from sqlalchemy.orm import relationship
from .base import BaseModel


class Post(BaseModel):
    __tablename__ = "posts"

    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    price = Column(Float, nullable=True)
    status = Column(String(20), default="available", nullable=False)  # "available", "sold", "removed"

    seller = relationship("User", backref="posts")
