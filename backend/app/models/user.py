"""
User model, including the denormalized seller rating aggregates
"""

from sqlalchemy import Column, Integer, String, Boolean, Float, Enum
from .base import BaseModel
from ..enums.user import UserRole


class User(BaseModel):
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    full_name = Column(String(100), nullable=False)
    profile_picture_url = Column(String(500), nullable=True)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.USER)
    is_active = Column(Boolean, default=True, nullable=False)

    # Seller aggregates - written only by the aggregate recompute in services/aggregates.py
    total_ratings = Column(Integer, default=0, nullable=False)
    positive_ratings = Column(Integer, default=0, nullable=False)  # ratings >= 4
    seller_rating = Column(Float, default=0.0, nullable=False)  # 0-5 positive-ratio score
