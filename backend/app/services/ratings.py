"""
Seller rating operations: create, update, delete and the public read side
"""

from typing import List, Optional

from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..config import settings
from ..core.exceptions import (
    DuplicateRatingError,
    EligibilityError,
    NotFoundError,
    RatingAuthorizationError,
    RatingValidationError,
    SelfRatingError,
)
from ..core.logging import get_logger
from ..models.post import Post
from ..models.rating import Rating
from ..models.user import User
from ..schemas.rating import (
    RatingCreate,
    RatingDistributionEntry,
    RatingDistributionResponse,
    RatingResponse,
    RatingUpdate,
    SellerScoreResponse,
    TopSellerResponse,
)
from .aggregates import SellerAggregate, recompute_seller_aggregate
from .eligibility import RatingEligibility, check_rating_eligibility, find_existing_rating

logger = get_logger(__name__)

_ELIGIBILITY_ERRORS = {
    "SELF_RATING": SelfRatingError,
    "NOT_FOUND": NotFoundError,
    "MESSAGE_EXCHANGE_REQUIRED": EligibilityError,
    "DUPLICATE_RATING": DuplicateRatingError,
}


def _validate_rating_values(rating: Optional[int], comment: Optional[str], rating_required: bool) -> None:
    if rating is None:
        if rating_required:
            raise RatingValidationError("Rating is required")
    elif isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise RatingValidationError("Rating must be between 1 and 5 stars")

    if comment is not None and len(comment) > settings.max_comment_length:
        raise RatingValidationError(
            f"Comment must not exceed {settings.max_comment_length} characters"
        )


def _raise_for_eligibility(eligibility: RatingEligibility) -> None:
    error_class = _ELIGIBILITY_ERRORS.get(eligibility.code, RatingValidationError)
    raise error_class(eligibility.reason or "Not eligible to rate this seller")


def _get_seller(db: Session, seller_id: int) -> User:
    seller = db.query(User).filter(
        User.id == seller_id,
        User.is_active == True  # noqa: E712
    ).first()
    if not seller:
        raise NotFoundError("Seller not found")
    return seller


def _get_owned_rating(db: Session, rater_id: int, rating_id: int, action: str) -> Rating:
    rating = db.query(Rating).filter(Rating.id == rating_id).first()
    if not rating:
        raise NotFoundError("Rating not found")
    if rating.rater_id != rater_id:
        raise RatingAuthorizationError(f"You can only {action} your own ratings")
    return rating


def create_rating(db: Session, rater: User, data: RatingCreate) -> Rating:
    """
    Create a rating for a seller and refresh the seller's aggregates

    Raises:
        RatingValidationError: rating outside 1-5 or comment too long
        SelfRatingError: rater and seller are the same user
        NotFoundError: seller (or referenced post) does not exist
        EligibilityError: no message exchange with the seller
        DuplicateRatingError: the rater already rated this seller
    """
    _validate_rating_values(data.rating, data.comment, rating_required=True)

    eligibility = check_rating_eligibility(db, rater.id, data.seller_id, data.post_id)
    if not eligibility.can_rate:
        _raise_for_eligibility(eligibility)

    if data.post_id is not None:
        post = db.query(Post).filter(Post.id == data.post_id).first()
        if not post:
            raise NotFoundError("Post not found")

    rating = Rating(
        seller_id=data.seller_id,
        rater_id=rater.id,
        post_id=data.post_id,
        rating=data.rating,
        comment=data.comment,
        created_by=rater.username
    )
    db.add(rating)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        # A concurrent create for the same pair won the unique constraint
        if find_existing_rating(db, rater.id, data.seller_id) is not None:
            logger.info(f"Duplicate rating race for seller {data.seller_id} by user {rater.id}")
            raise DuplicateRatingError("You have already rated this seller") from e
        raise
    db.refresh(rating)

    logger.info(
        f"User {rater.id} rated seller {data.seller_id}: {data.rating} stars",
        extra={
            "event": "rating_created",
            "rating_id": rating.id,
            "seller_id": data.seller_id,
            "rater_id": rater.id,
        },
    )

    recompute_seller_aggregate(db, data.seller_id)
    return rating


def update_rating(db: Session, rater: User, rating_id: int, data: RatingUpdate) -> Rating:
    """Update the stars and/or comment of a rating owned by ``rater``"""
    rating = _get_owned_rating(db, rater.id, rating_id, action="update")

    changes = data.model_dump(exclude_unset=True)
    if changes.get("rating", 0) is None:
        del changes["rating"]
    _validate_rating_values(changes.get("rating"), changes.get("comment"), rating_required=False)

    for field_name, value in changes.items():
        setattr(rating, field_name, value)
    rating.updated_by = rater.username
    db.commit()
    db.refresh(rating)

    logger.info(
        f"User {rater.id} updated rating {rating.id}",
        extra={"event": "rating_updated", "rating_id": rating.id, "seller_id": rating.seller_id},
    )

    recompute_seller_aggregate(db, rating.seller_id)
    return rating


def delete_rating(db: Session, rater: User, rating_id: int) -> None:
    """Delete a rating owned by ``rater``"""
    rating = _get_owned_rating(db, rater.id, rating_id, action="delete")
    seller_id = rating.seller_id

    db.delete(rating)
    db.commit()

    logger.info(
        f"User {rater.id} deleted rating {rating_id}",
        extra={"event": "rating_deleted", "rating_id": rating_id, "seller_id": seller_id},
    )

    recompute_seller_aggregate(db, seller_id)


def get_seller_ratings(db: Session, seller_id: int, limit: int = 10, offset: int = 0) -> List[Rating]:
    """Ratings received by a seller, newest first"""
    _get_seller(db, seller_id)
    return db.query(Rating).options(
        joinedload(Rating.rater),
        joinedload(Rating.post)
    ).filter(
        Rating.seller_id == seller_id
    ).order_by(Rating.created_at.desc(), Rating.id.desc()).offset(offset).limit(limit).all()


def get_ratings_given_by_user(db: Session, rater_id: int, limit: int = 10, offset: int = 0) -> List[Rating]:
    """Ratings a user has left for other sellers, newest first"""
    return db.query(Rating).options(
        joinedload(Rating.seller),
        joinedload(Rating.post)
    ).filter(
        Rating.rater_id == rater_id
    ).order_by(Rating.created_at.desc(), Rating.id.desc()).offset(offset).limit(limit).all()


def build_display_text(total_ratings: int, score: float) -> str:
    if total_ratings == 0:
        return "New Seller"
    if total_ratings < settings.score_display_min_ratings:
        return f"{total_ratings} {'rating' if total_ratings == 1 else 'ratings'}"
    return f"{score:.1f} ★"


def get_seller_score(db: Session, seller_id: int) -> SellerScoreResponse:
    """Live score and statistics for a seller, computed from the rating rows"""
    _get_seller(db, seller_id)

    total, average, positive = db.query(
        func.count(Rating.id),
        func.avg(Rating.rating),
        func.sum(case((Rating.rating >= settings.positive_rating_threshold, 1), else_=0)),
    ).filter(Rating.seller_id == seller_id).one()

    aggregate = SellerAggregate.from_counts(total, int(positive or 0))
    score = round(aggregate.seller_rating, 1)
    recent = get_seller_ratings(db, seller_id, limit=settings.recent_ratings_limit)

    return SellerScoreResponse(
        score=score,
        average_rating=round(float(average or 0), 1),
        total_ratings=aggregate.total_ratings,
        positive_ratings=aggregate.positive_ratings,
        display_text=build_display_text(aggregate.total_ratings, score),
        recent_ratings=[RatingResponse.model_validate(r) for r in recent],
    )


def get_rating_distribution(db: Session, seller_id: int) -> RatingDistributionResponse:
    """Count of ratings per star value, 5 down to 1"""
    _get_seller(db, seller_id)

    rows = db.query(Rating.rating, func.count(Rating.id)).filter(
        Rating.seller_id == seller_id
    ).group_by(Rating.rating).all()
    counts = {stars: count for stars, count in rows}

    distribution = [
        RatingDistributionEntry(rating=stars, count=counts.get(stars, 0))
        for stars in (5, 4, 3, 2, 1)
    ]
    return RatingDistributionResponse(
        distribution=distribution,
        total=sum(entry.count for entry in distribution),
    )


def get_top_rated_sellers(db: Session, limit: int = 10, min_ratings: int = 3) -> List[TopSellerResponse]:
    """Active sellers with at least ``min_ratings`` ratings, best stored score first"""
    sellers = db.query(User).filter(
        User.total_ratings >= min_ratings,
        User.is_active == True  # noqa: E712
    ).order_by(User.seller_rating.desc(), User.total_ratings.desc()).limit(limit).all()

    return [
        TopSellerResponse(
            id=seller.id,
            full_name=seller.full_name,
            profile_picture_url=seller.profile_picture_url,
            seller_rating=seller.seller_rating,
            total_ratings=seller.total_ratings,
            positive_ratings=seller.positive_ratings,
            positive_percentage=(
                seller.positive_ratings / seller.total_ratings * 100 if seller.total_ratings else 0.0
            ),
        )
        for seller in sellers
    ]
