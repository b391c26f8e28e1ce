"""
Rating model for buyers rating sellers
"""

from sqlalchemy import Column, Integer, ForeignKey, Text, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from .base import BaseModel


class Rating(BaseModel):
    __tablename__ = "seller_ratings"
    __table_args__ = (
        # One rating per rater per seller, whatever post it was left on
        UniqueConstraint("seller_id", "rater_id", name="uq_seller_ratings_seller_rater"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_seller_ratings_rating_range"),
    )

    seller_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # User being rated
    rater_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # User giving the rating
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=True, index=True)  # Optional transaction context

    # Rating (1-5 stars)
    rating = Column(Integer, nullable=False)

    # Optional comment
    comment = Column(Text, nullable=True)

    # Relationships
    seller = relationship("User", foreign_keys=[seller_id], backref="ratings_received")
    rater = relationship("User", foreign_keys=[rater_id], backref="ratings_given")
    post = relationship("Post", backref="ratings")
