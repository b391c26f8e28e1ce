"""
Pytest configuration and shared fixtures
"""
import os
import itertools

import pytest
from fastapi.testclient import TestClient

# Environment for tests, set before the app modules read their settings
os.environ["DB_DRIVER"] = "sqlite"
os.environ["DB_NAME"] = ":memory:"
os.environ["SECRET_KEY"] = "test-secret-key-minimum-32-characters-long-for-security"
os.environ["ALGORITHM"] = "HS256"
os.environ["LOG_TO_CONSOLE"] = "false"
os.environ["LOG_TO_FILE"] = "false"

from app.auth.jwt_handler import create_access_token  # noqa: E402
from app.database import SessionLocal, engine  # noqa: E402
from app.enums.user import UserRole  # noqa: E402
from app.models.base import Base  # noqa: E402
from app.models.chat import Conversation, Message  # noqa: E402
from app.models.post import Post  # noqa: E402
from app.models.rating import Rating  # noqa: E402
from app.models.user import User  # noqa: E402

_counter = itertools.count(1)


@pytest.fixture
def db():
    """
    Fresh database session; the schema is recreated for every test
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    """
    FastAPI test client sharing the test database
    """
    from app.main import app

    return TestClient(app)


@pytest.fixture
def make_user(db):
    def _make_user(full_name=None, is_active=True, role=UserRole.USER):
        n = next(_counter)
        user = User(
            email=f"user{n}@campus.edu",
            username=f"user{n}",
            full_name=full_name or f"User {n}",
            is_active=is_active,
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_post(db):
    def _make_post(seller, title="Desk lamp", price=15.0):
        post = Post(seller_id=seller.id, title=title, price=price)
        db.add(post)
        db.commit()
        db.refresh(post)
        return post

    return _make_post


@pytest.fixture
def exchange_messages(db):
    """Create a conversation between two users with one message"""
    def _exchange(sender, recipient, is_deleted=False):
        conversation = Conversation(user1_id=sender.id, user2_id=recipient.id)
        db.add(conversation)
        db.flush()
        db.add(Message(
            conversation_id=conversation.id,
            sender_id=sender.id,
            content="Is this still available?",
            is_deleted=is_deleted,
        ))
        db.commit()
        return conversation

    return _exchange


@pytest.fixture
def add_rating(db):
    """Insert a rating row directly, bypassing the service"""
    def _add_rating(seller, rater, stars, comment=None, post=None):
        rating = Rating(
            seller_id=seller.id,
            rater_id=rater.id,
            post_id=post.id if post else None,
            rating=stars,
            comment=comment,
        )
        db.add(rating)
        db.commit()
        db.refresh(rating)
        return rating

    return _add_rating


@pytest.fixture
def seller(make_user):
    return make_user(full_name="Sam Seller")


@pytest.fixture
def buyer(make_user, seller, exchange_messages):
    """A buyer who has already messaged the seller"""
    user = make_user(full_name="Bea Buyer")
    exchange_messages(user, seller)
    return user


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _auth_headers
