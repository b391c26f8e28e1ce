"""
Tests for rating create/update/delete and the read side
"""
import pytest
from sqlalchemy.exc import OperationalError

from app.core.exceptions import (
    DuplicateRatingError,
    EligibilityError,
    NotFoundError,
    RatingAuthorizationError,
    RatingValidationError,
    SelfRatingError,
)
from app.models.rating import Rating
from app.schemas.rating import RatingCreate, RatingUpdate
from app.services import aggregates
from app.services import ratings as rating_service
from app.services.aggregates import verify_all_seller_aggregates
from app.services.eligibility import RatingEligibility


def _create(db, rater, seller, stars=5, **kwargs):
    return rating_service.create_rating(
        db, rater, RatingCreate(seller_id=seller.id, rating=stars, **kwargs)
    )


def _rated_by_new_buyers(db, seller, make_user, exchange_messages, stars_list):
    for stars in stars_list:
        rater = make_user()
        exchange_messages(rater, seller)
        _create(db, rater, seller, stars)


class TestCreateRating:
    def test_creates_rating_and_updates_aggregates(self, db, seller, buyer):
        rating = _create(db, buyer, seller, 4, comment="Quick and friendly")

        assert rating.id is not None
        assert rating.rater_id == buyer.id
        assert rating.comment == "Quick and friendly"
        assert rating.created_by == buyer.username

        db.refresh(seller)
        assert seller.total_ratings == 1
        assert seller.positive_ratings == 1
        assert seller.seller_rating == pytest.approx(5.0)

    def test_scenario_aggregates(self, db, seller, make_user, exchange_messages):
        _rated_by_new_buyers(db, seller, make_user, exchange_messages, [5, 5, 4, 3, 2])

        db.refresh(seller)
        assert seller.total_ratings == 5
        assert seller.positive_ratings == 3
        assert seller.seller_rating == pytest.approx(3.0)

    def test_create_then_verify_has_no_discrepancies(self, db, seller, buyer):
        _create(db, buyer, seller, 3)

        report = verify_all_seller_aggregates(db)
        assert report.total_sellers == 1
        assert report.discrepancies == []

    def test_links_post(self, db, seller, buyer, make_post):
        post = make_post(seller)
        rating = _create(db, buyer, seller, post_id=post.id)
        assert rating.post.title == "Desk lamp"

    def test_unknown_post(self, db, seller, buyer):
        with pytest.raises(NotFoundError, match="Post not found"):
            _create(db, buyer, seller, post_id=12345)

    @pytest.mark.parametrize("stars", [0, 6, -1])
    def test_rejects_out_of_range_rating(self, db, seller, buyer, stars):
        data = RatingCreate.model_construct(seller_id=seller.id, post_id=None, rating=stars, comment=None)
        with pytest.raises(RatingValidationError):
            rating_service.create_rating(db, buyer, data)
        assert db.query(Rating).count() == 0

    def test_rejects_non_integer_rating(self, db, seller, buyer):
        data = RatingCreate.model_construct(seller_id=seller.id, post_id=None, rating=4.5, comment=None)
        with pytest.raises(RatingValidationError):
            rating_service.create_rating(db, buyer, data)

    def test_rejects_long_comment(self, db, seller, buyer):
        data = RatingCreate.model_construct(seller_id=seller.id, post_id=None, rating=4, comment="x" * 1001)
        with pytest.raises(RatingValidationError, match="1000"):
            rating_service.create_rating(db, buyer, data)

    def test_self_rating(self, db, seller):
        with pytest.raises(SelfRatingError):
            _create(db, seller, seller)
        assert db.query(Rating).count() == 0

    def test_unknown_seller(self, db, buyer):
        with pytest.raises(NotFoundError, match="Seller not found"):
            rating_service.create_rating(db, buyer, RatingCreate(seller_id=999, rating=5))

    def test_requires_message_exchange(self, db, seller, make_user):
        stranger = make_user()
        with pytest.raises(EligibilityError):
            _create(db, stranger, seller)
        assert db.query(Rating).count() == 0

    def test_duplicate_rating(self, db, seller, buyer):
        _create(db, buyer, seller, 5)
        with pytest.raises(DuplicateRatingError):
            _create(db, buyer, seller, 1)

        assert db.query(Rating).filter(Rating.seller_id == seller.id).count() == 1

    def test_duplicate_race_maps_constraint_violation(self, db, seller, buyer, add_rating, monkeypatch):
        add_rating(seller, buyer, 5)
        # Simulate a concurrent request that passed eligibility before the first insert landed
        monkeypatch.setattr(
            rating_service,
            "check_rating_eligibility",
            lambda *args, **kwargs: RatingEligibility(can_rate=True),
        )

        with pytest.raises(DuplicateRatingError):
            _create(db, buyer, seller, 2)
        assert db.query(Rating).count() == 1

    @pytest.mark.parametrize("error", [
        OperationalError("UPDATE users", {}, Exception("database is locked")),
        ValueError("bad aggregate"),
    ])
    def test_aggregate_failure_does_not_fail_create(self, db, seller, buyer, monkeypatch, error):
        def broken(*args, **kwargs):
            raise error

        monkeypatch.setattr(aggregates, "calculate_seller_aggregate", broken)

        rating = _create(db, buyer, seller, 5)

        assert rating.id is not None
        assert rating.rating == 5
        assert db.query(Rating).count() == 1
        db.refresh(seller)
        assert seller.total_ratings == 0
        assert verify_all_seller_aggregates(db).sellers_with_discrepancies == 1


class TestUpdateRating:
    def test_owner_updates_and_aggregates_follow(self, db, seller, buyer):
        rating = _create(db, buyer, seller, 5)

        updated = rating_service.update_rating(db, buyer, rating.id, RatingUpdate(rating=2))

        assert updated.rating == 2
        assert updated.updated_by == buyer.username
        db.refresh(seller)
        assert seller.positive_ratings == 0
        assert seller.seller_rating == 0

    def test_partial_update_keeps_other_fields(self, db, seller, buyer):
        rating = _create(db, buyer, seller, 4, comment="Good")

        updated = rating_service.update_rating(db, buyer, rating.id, RatingUpdate(comment="Great"))

        assert updated.rating == 4
        assert updated.comment == "Great"

    def test_non_owner_rejected(self, db, seller, buyer, make_user):
        rating = _create(db, buyer, seller, 5)
        intruder = make_user()

        with pytest.raises(RatingAuthorizationError):
            rating_service.update_rating(db, intruder, rating.id, RatingUpdate(rating=1))

        db.refresh(rating)
        assert rating.rating == 5

    def test_seller_cannot_edit_received_rating(self, db, seller, buyer):
        rating = _create(db, buyer, seller, 2)
        with pytest.raises(RatingAuthorizationError):
            rating_service.update_rating(db, seller, rating.id, RatingUpdate(rating=5))

    def test_missing_rating(self, db, buyer):
        with pytest.raises(NotFoundError, match="Rating not found"):
            rating_service.update_rating(db, buyer, 777, RatingUpdate(rating=3))

    def test_rejects_invalid_value(self, db, seller, buyer):
        rating = _create(db, buyer, seller, 5)
        data = RatingUpdate.model_construct(rating=9)

        with pytest.raises(RatingValidationError):
            rating_service.update_rating(db, buyer, rating.id, data)


class TestDeleteRating:
    def test_deleting_only_rating_resets_aggregates(self, db, seller, buyer):
        rating = _create(db, buyer, seller, 5)

        rating_service.delete_rating(db, buyer, rating.id)

        assert db.query(Rating).count() == 0
        db.refresh(seller)
        assert seller.total_ratings == 0
        assert seller.seller_rating == 0

    def test_non_owner_rejected(self, db, seller, buyer, make_user):
        rating = _create(db, buyer, seller, 5)

        with pytest.raises(RatingAuthorizationError):
            rating_service.delete_rating(db, make_user(), rating.id)
        assert db.query(Rating).count() == 1

    def test_missing_rating(self, db, buyer):
        with pytest.raises(NotFoundError):
            rating_service.delete_rating(db, buyer, 4242)

    def test_can_rate_again_after_delete(self, db, seller, buyer):
        rating = _create(db, buyer, seller, 1)
        rating_service.delete_rating(db, buyer, rating.id)

        again = _create(db, buyer, seller, 4)
        assert again.rating == 4


class TestMutationSequences:
    def test_invariant_after_mixed_mutations(self, db, seller, make_user, exchange_messages):
        raters = []
        for stars in [5, 1, 4, 3]:
            rater = make_user()
            exchange_messages(rater, seller)
            raters.append((rater, _create(db, rater, seller, stars)))

        rating_service.update_rating(db, raters[1][0], raters[1][1].id, RatingUpdate(rating=5))
        rating_service.delete_rating(db, raters[3][0], raters[3][1].id)
        rating_service.update_rating(db, raters[0][0], raters[0][1].id, RatingUpdate(rating=2))

        db.refresh(seller)
        assert seller.total_ratings == 3
        assert seller.positive_ratings == 2
        assert seller.positive_ratings <= seller.total_ratings
        assert seller.seller_rating == pytest.approx(2 / 3 * 5)
        assert verify_all_seller_aggregates(db).discrepancies == []


class TestReadSide:
    def test_seller_ratings_newest_first(self, db, seller, make_user, exchange_messages):
        _rated_by_new_buyers(db, seller, make_user, exchange_messages, [5, 3, 4])

        ratings = rating_service.get_seller_ratings(db, seller.id)
        assert [r.rating for r in ratings] == [4, 3, 5]

        page = rating_service.get_seller_ratings(db, seller.id, limit=1, offset=1)
        assert [r.rating for r in page] == [3]

    def test_seller_ratings_unknown_seller(self, db):
        with pytest.raises(NotFoundError):
            rating_service.get_seller_ratings(db, 31337)

    def test_inactive_seller_is_not_found(self, db, buyer, make_user, add_rating):
        inactive = make_user(is_active=False)
        add_rating(inactive, buyer, 5)

        with pytest.raises(NotFoundError, match="Seller not found"):
            rating_service.get_seller_ratings(db, inactive.id)
        with pytest.raises(NotFoundError):
            rating_service.get_seller_score(db, inactive.id)
        with pytest.raises(NotFoundError):
            rating_service.get_rating_distribution(db, inactive.id)

    def test_ratings_given_by_user(self, db, buyer, seller, make_user, exchange_messages):
        other_seller = make_user()
        exchange_messages(buyer, other_seller)
        _create(db, buyer, seller, 5)
        _create(db, buyer, other_seller, 2)

        given = rating_service.get_ratings_given_by_user(db, buyer.id)
        assert {r.seller_id for r in given} == {seller.id, other_seller.id}

    def test_score_for_new_seller(self, db, seller):
        score = rating_service.get_seller_score(db, seller.id)
        assert score.display_text == "New Seller"
        assert score.score == 0
        assert score.total_ratings == 0
        assert score.recent_ratings == []

    def test_score_with_few_ratings_shows_count(self, db, seller, make_user, exchange_messages):
        _rated_by_new_buyers(db, seller, make_user, exchange_messages, [5])
        assert rating_service.get_seller_score(db, seller.id).display_text == "1 rating"

        _rated_by_new_buyers(db, seller, make_user, exchange_messages, [4])
        assert rating_service.get_seller_score(db, seller.id).display_text == "2 ratings"

    def test_score_with_enough_ratings(self, db, seller, make_user, exchange_messages):
        _rated_by_new_buyers(db, seller, make_user, exchange_messages, [5, 5, 4, 3, 2, 1])

        score = rating_service.get_seller_score(db, seller.id)
        assert score.score == 2.5
        assert score.average_rating == 3.3
        assert score.positive_ratings == 3
        assert score.display_text == "2.5 ★"
        assert len(score.recent_ratings) == 5

    def test_distribution_fills_missing_stars(self, db, seller, make_user, exchange_messages):
        _rated_by_new_buyers(db, seller, make_user, exchange_messages, [5, 5, 2])

        result = rating_service.get_rating_distribution(db, seller.id)
        assert [(d.rating, d.count) for d in result.distribution] == [(5, 2), (4, 0), (3, 0), (2, 1), (1, 0)]
        assert result.total == 3

    def test_top_rated_sellers(self, db, make_user, exchange_messages):
        great, good, too_new = make_user(), make_user(), make_user()
        _rated_by_new_buyers(db, great, make_user, exchange_messages, [5, 5, 5])
        _rated_by_new_buyers(db, good, make_user, exchange_messages, [5, 4, 2])
        _rated_by_new_buyers(db, too_new, make_user, exchange_messages, [5])

        top = rating_service.get_top_rated_sellers(db, limit=10, min_ratings=3)

        assert [s.id for s in top] == [great.id, good.id]
        assert top[0].positive_percentage == pytest.approx(100.0)
        assert top[1].positive_percentage == pytest.approx(200 / 3)
