"""
Rating schemas for request/response validation
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class RatingCreate(BaseModel):
    seller_id: int = Field(..., gt=0)
    post_id: Optional[int] = Field(None, gt=0)
    rating: int = Field(..., ge=1, le=5, description="Rating must be between 1 and 5")
    comment: Optional[str] = Field(None, max_length=1000)


class RatingUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5, description="Rating must be between 1 and 5")
    comment: Optional[str] = Field(None, max_length=1000)


class RatingUserSummary(BaseModel):
    id: int
    full_name: str
    profile_picture_url: Optional[str] = None

    class Config:
        from_attributes = True


class RatingPostSummary(BaseModel):
    id: int
    title: str

    class Config:
        from_attributes = True


class RatingResponse(BaseModel):
    id: int
    seller_id: int
    rater_id: int
    post_id: Optional[int] = None
    rating: int
    comment: Optional[str] = None
    rater: Optional[RatingUserSummary] = None
    seller: Optional[RatingUserSummary] = None
    post: Optional[RatingPostSummary] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SellerScoreResponse(BaseModel):
    score: float  # positive-ratio score (0-5)
    average_rating: float  # mean of all stars (0-5)
    total_ratings: int
    positive_ratings: int
    display_text: str  # e.g. "4.8 ★" or "New Seller"
    recent_ratings: List[RatingResponse] = []


class RatingDistributionEntry(BaseModel):
    rating: int
    count: int


class RatingDistributionResponse(BaseModel):
    distribution: List[RatingDistributionEntry]
    total: int


class CanRateResponse(BaseModel):
    can_rate: bool
    reason: Optional[str] = None
    code: Optional[str] = None
    already_rated: bool = False
    existing_rating_id: Optional[int] = None

    class Config:
        from_attributes = True


class TopSellerResponse(BaseModel):
    id: int
    full_name: str
    profile_picture_url: Optional[str] = None
    seller_rating: float
    total_ratings: int
    positive_ratings: int
    positive_percentage: float


class AggregateValues(BaseModel):
    total_ratings: int
    positive_ratings: int
    seller_rating: float

    class Config:
        from_attributes = True


class AggregateDiscrepancyResponse(BaseModel):
    seller_id: int
    seller_name: Optional[str] = None
    stored: AggregateValues
    actual: AggregateValues
    mismatched_fields: List[str]


class AggregateVerificationResponse(BaseModel):
    total_sellers: int
    sellers_with_discrepancies: int
    discrepancies: List[AggregateDiscrepancyResponse]
