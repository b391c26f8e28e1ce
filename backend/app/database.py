"""
Database configuration and session management
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from .config import settings
from .models.base import Base  # noqa: F401
# Import all models to ensure they're registered with SQLAlchemy
from .models import user, post, chat, rating  # noqa: F401

# Create database engine
if settings.db_driver.startswith("sqlite"):
    # In-memory SQLite must share one connection across threads (tests, local runs)
    engine = create_engine(
        settings.database_url,
        echo=(settings.log_verbosity == "full"),
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
elif settings.db_host.startswith('/cloudsql/'):
    # For Cloud SQL, use the host as the Unix socket directory
    unix_socket_path = '/cloudsql/' + settings.db_host.split('/cloudsql/')[1]
    engine = create_engine(
        settings.database_url,
        echo=(settings.log_verbosity == "full"),
        pool_pre_ping=True,
        pool_recycle=300,
        connect_args={
            "host": unix_socket_path
        }
    )
else:
    engine = create_engine(
        settings.database_url,
        echo=(settings.log_verbosity == "full"),
        pool_pre_ping=True,
        pool_recycle=300,
    )

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """
    Database dependency for FastAPI routes
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
