"""
Seller rating routes
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from ..database import get_db
from ..models.user import User
from ..auth.dependencies import get_current_active_user, require_admin
from ..config import settings
from ..schemas.rating import (
    AggregateDiscrepancyResponse,
    AggregateValues,
    AggregateVerificationResponse,
    CanRateResponse,
    RatingCreate,
    RatingDistributionResponse,
    RatingResponse,
    RatingUpdate,
    SellerScoreResponse,
    TopSellerResponse,
)
from ..services import ratings as rating_service
from ..services.aggregates import verify_all_seller_aggregates
from ..services.eligibility import check_rating_eligibility

router = APIRouter()


@router.post("/", response_model=RatingResponse, status_code=status.HTTP_201_CREATED)
def create_rating(
    rating_data: RatingCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Rate a seller the current user has exchanged messages with"""
    return rating_service.create_rating(db, current_user, rating_data)


@router.get("/my-ratings", response_model=List[RatingResponse])
def get_my_ratings(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Ratings given by the current user"""
    return rating_service.get_ratings_given_by_user(db, current_user.id, limit, offset)


@router.get("/top-sellers", response_model=List[TopSellerResponse])
def get_top_rated_sellers(
    limit: int = Query(10, ge=1, le=100),
    min_ratings: int = Query(3, ge=1),
    db: Session = Depends(get_db)
):
    """Top-rated sellers (public endpoint)"""
    return rating_service.get_top_rated_sellers(db, limit, min_ratings)


@router.get("/can-rate", response_model=CanRateResponse)
def can_rate_seller(
    seller_id: int = Query(..., gt=0),
    post_id: Optional[int] = Query(None, gt=0),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Check whether the current user may rate a seller"""
    eligibility = check_rating_eligibility(db, current_user.id, seller_id, post_id)
    return CanRateResponse.model_validate(eligibility)


@router.get("/admin/verify-aggregates", response_model=AggregateVerificationResponse)
def verify_aggregates(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Compare stored seller aggregates with the rating rows (admin only, read-only)"""
    report = verify_all_seller_aggregates(db)
    return AggregateVerificationResponse(
        total_sellers=report.total_sellers,
        sellers_with_discrepancies=report.sellers_with_discrepancies,
        discrepancies=[
            AggregateDiscrepancyResponse(
                seller_id=d.seller_id,
                seller_name=d.seller_name,
                stored=AggregateValues.model_validate(d.stored),
                actual=AggregateValues.model_validate(d.actual),
                mismatched_fields=d.mismatched_fields(settings.aggregate_score_tolerance),
            )
            for d in report.discrepancies
        ],
    )


@router.get("/seller/{seller_id}", response_model=List[RatingResponse])
def get_seller_ratings(
    seller_id: int,
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    """Ratings received by a seller (public endpoint)"""
    return rating_service.get_seller_ratings(db, seller_id, limit, offset)


@router.get("/seller/{seller_id}/score", response_model=SellerScoreResponse)
def get_seller_score(seller_id: int, db: Session = Depends(get_db)):
    """Seller score and statistics (public endpoint)"""
    return rating_service.get_seller_score(db, seller_id)


@router.get("/seller/{seller_id}/distribution", response_model=RatingDistributionResponse)
def get_rating_distribution(seller_id: int, db: Session = Depends(get_db)):
    """Star distribution for a seller (public endpoint)"""
    return rating_service.get_rating_distribution(db, seller_id)


@router.put("/{rating_id}", response_model=RatingResponse)
def update_rating(
    rating_id: int,
    rating_data: RatingUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Update one of the current user's ratings"""
    return rating_service.update_rating(db, current_user, rating_id, rating_data)


@router.delete("/{rating_id}")
def delete_rating(
    rating_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    """Delete one of the current user's ratings"""
    rating_service.delete_rating(db, current_user, rating_id)
    return {"message": "Rating deleted successfully"}
