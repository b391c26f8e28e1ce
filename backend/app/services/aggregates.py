"""
Seller aggregate maintenance and verification

The three aggregate columns on ``User`` are a materialized view over the
``seller_ratings`` table. They are refreshed by a full recompute after every
rating mutation and may be stale until the next recompute or backfill run.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

from sqlalchemy import case, func, or_, select
from sqlalchemy.orm import Session

from ..config import settings
from ..core.logging import get_logger
from ..models.rating import Rating
from ..models.user import User

logger = get_logger(__name__)


@dataclass(frozen=True)
class SellerAggregate:
    total_ratings: int = 0
    positive_ratings: int = 0
    seller_rating: float = 0.0

    @classmethod
    def from_counts(cls, total_ratings: int, positive_ratings: int) -> "SellerAggregate":
        score = (positive_ratings / total_ratings) * 5 if total_ratings > 0 else 0.0
        return cls(
            total_ratings=total_ratings,
            positive_ratings=positive_ratings,
            seller_rating=score,
        )

    @classmethod
    def from_user(cls, user: User) -> "SellerAggregate":
        return cls(
            total_ratings=user.total_ratings or 0,
            positive_ratings=user.positive_ratings or 0,
            seller_rating=float(user.seller_rating or 0.0),
        )

    def matches(self, other: "SellerAggregate", tolerance: float) -> bool:
        return (
            self.total_ratings == other.total_ratings
            and self.positive_ratings == other.positive_ratings
            and abs(self.seller_rating - other.seller_rating) < tolerance
        )

    def as_dict(self) -> Dict[str, Union[int, float]]:
        return {
            "total_ratings": self.total_ratings,
            "positive_ratings": self.positive_ratings,
            "seller_rating": self.seller_rating,
        }


@dataclass
class AggregateDiscrepancy:
    seller_id: int
    seller_name: Optional[str]
    stored: SellerAggregate
    actual: SellerAggregate

    def mismatched_fields(self, tolerance: float) -> List[str]:
        fields = []
        if self.stored.total_ratings != self.actual.total_ratings:
            fields.append("total_ratings")
        if self.stored.positive_ratings != self.actual.positive_ratings:
            fields.append("positive_ratings")
        if abs(self.stored.seller_rating - self.actual.seller_rating) >= tolerance:
            fields.append("seller_rating")
        return fields


@dataclass
class AggregateVerificationReport:
    total_sellers: int = 0
    discrepancies: List[AggregateDiscrepancy] = field(default_factory=list)

    @property
    def sellers_with_discrepancies(self) -> int:
        return len(self.discrepancies)


def compute_seller_aggregate(
    ratings: Iterable[int],
    positive_threshold: Optional[int] = None,
) -> SellerAggregate:
    """Compute aggregates from raw star values"""
    threshold = positive_threshold if positive_threshold is not None else settings.positive_rating_threshold
    values = list(ratings)
    positive = sum(1 for value in values if value >= threshold)
    return SellerAggregate.from_counts(len(values), positive)


def calculate_seller_aggregate(db: Session, seller_id: int) -> SellerAggregate:
    """Compute a seller's aggregates from the rating rows currently stored"""
    rows = db.query(Rating.rating).filter(Rating.seller_id == seller_id).all()
    return compute_seller_aggregate(value for (value,) in rows)


def recompute_seller_aggregate(db: Session, seller_id: int) -> bool:
    """
    Recompute and persist a seller's aggregates

    Idempotent full recompute. Failures are logged and rolled back but never
    raised, so a rating write is not undone by aggregate maintenance; the
    verifier/backfill reconciles any drift left behind.

    Returns:
        True if the aggregates were written, False otherwise
    """
    try:
        aggregate = calculate_seller_aggregate(db, seller_id)
        updated = db.query(User).filter(User.id == seller_id).update(
            aggregate.as_dict(), synchronize_session="fetch"
        )
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(
            f"Failed to update seller aggregates for user {seller_id}: {str(e)}",
            exc_info=True,
            extra={"event": "aggregate_update_failed", "seller_id": seller_id},
        )
        return False

    if not updated:
        logger.warning(f"Seller {seller_id} not found while updating aggregates")
        return False

    logger.debug(
        f"Seller {seller_id} aggregates: total={aggregate.total_ratings} "
        f"positive={aggregate.positive_ratings} score={aggregate.seller_rating:.2f}"
    )
    return True


def _actual_aggregates_by_seller(db: Session) -> Dict[int, SellerAggregate]:
    threshold = settings.positive_rating_threshold
    rows = db.query(
        Rating.seller_id,
        func.count(Rating.id),
        func.sum(case((Rating.rating >= threshold, 1), else_=0)),
    ).group_by(Rating.seller_id).all()
    return {
        seller_id: SellerAggregate.from_counts(total, int(positive or 0))
        for seller_id, total, positive in rows
    }


def verify_all_seller_aggregates(
    db: Session,
    tolerance: Optional[float] = None,
) -> AggregateVerificationReport:
    """
    Compare stored seller aggregates against the rating rows. Read-only.

    Checks every seller with stored ratings and every seller that has rating
    rows, so a seller whose first recompute failed is still reported.
    """
    tolerance = tolerance if tolerance is not None else settings.aggregate_score_tolerance
    actual_by_seller = _actual_aggregates_by_seller(db)

    rated_seller_ids = select(Rating.seller_id).distinct()
    sellers = db.query(User).filter(
        or_(User.total_ratings > 0, User.id.in_(rated_seller_ids))
    ).order_by(User.id).all()

    report = AggregateVerificationReport(total_sellers=len(sellers))
    for seller in sellers:
        stored = SellerAggregate.from_user(seller)
        actual = actual_by_seller.get(seller.id, SellerAggregate())
        if not stored.matches(actual, tolerance):
            report.discrepancies.append(
                AggregateDiscrepancy(
                    seller_id=seller.id,
                    seller_name=seller.full_name,
                    stored=stored,
                    actual=actual,
                )
            )

    if report.discrepancies:
        logger.warning(
            f"Aggregate verification found {report.sellers_with_discrepancies} "
            f"of {report.total_sellers} sellers out of sync",
            extra={"event": "aggregate_drift", "sellers": [d.seller_id for d in report.discrepancies]},
        )
    else:
        logger.info(f"Aggregate verification passed for {report.total_sellers} sellers")
    return report


def fix_all_seller_aggregates(db: Session) -> int:
    """Recompute every seller the verifier reports; returns how many were repaired"""
    report = verify_all_seller_aggregates(db)
    fixed = 0
    for discrepancy in report.discrepancies:
        if recompute_seller_aggregate(db, discrepancy.seller_id):
            fixed += 1
    logger.info(f"Repaired aggregates for {fixed} of {report.sellers_with_discrepancies} sellers")
    return fixed
