"""
Rating eligibility checks
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ..models.chat import Conversation, Message
from ..models.rating import Rating
from ..models.user import User

CANNOT_RATE_SELF = "Cannot rate yourself"
SELLER_NOT_FOUND = "Seller not found"
MESSAGE_EXCHANGE_REQUIRED = "Must have message exchange with seller to rate"
ALREADY_RATED = "Already rated this seller"


@dataclass(frozen=True)
class RatingEligibility:
    can_rate: bool
    reason: Optional[str] = None
    code: Optional[str] = None
    already_rated: bool = False
    existing_rating_id: Optional[int] = None


def has_message_exchange(db: Session, user_a_id: int, user_b_id: int) -> bool:
    """True if the two users share a conversation with at least one live message"""
    message = db.query(Message.id).join(
        Conversation, Message.conversation_id == Conversation.id
    ).filter(
        or_(
            and_(Conversation.user1_id == user_a_id, Conversation.user2_id == user_b_id),
            and_(Conversation.user1_id == user_b_id, Conversation.user2_id == user_a_id)
        ),
        Message.is_deleted == False  # noqa: E712
    ).first()
    return message is not None


def find_existing_rating(db: Session, rater_id: int, seller_id: int) -> Optional[Rating]:
    return db.query(Rating).filter(
        Rating.seller_id == seller_id,
        Rating.rater_id == rater_id
    ).first()


def check_rating_eligibility(
    db: Session,
    rater_id: int,
    seller_id: int,
    post_id: Optional[int] = None,
) -> RatingEligibility:
    """
    Decide whether ``rater_id`` may create a rating for ``seller_id``.

    Rules are evaluated in order and the first failure wins: self-rating,
    unknown or inactive seller, missing message exchange (only when no rating
    exists yet), then an existing rating, which callers route to the update
    flow. One rating per seller covers every post, so ``post_id`` does not
    change the outcome.
    """
    if rater_id == seller_id:
        return RatingEligibility(can_rate=False, reason=CANNOT_RATE_SELF, code="SELF_RATING")

    seller = db.query(User).filter(User.id == seller_id).first()
    if not seller or not seller.is_active:
        return RatingEligibility(can_rate=False, reason=SELLER_NOT_FOUND, code="NOT_FOUND")

    existing = find_existing_rating(db, rater_id, seller_id)
    if existing is None and not has_message_exchange(db, rater_id, seller_id):
        return RatingEligibility(
            can_rate=False,
            reason=MESSAGE_EXCHANGE_REQUIRED,
            code="MESSAGE_EXCHANGE_REQUIRED",
        )

    if existing is not None:
        return RatingEligibility(
            can_rate=False,
            reason=ALREADY_RATED,
            code="DUPLICATE_RATING",
            already_rated=True,
            existing_rating_id=existing.id,
        )

    return RatingEligibility(can_rate=True)
