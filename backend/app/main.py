"""
FastAPI application entry point
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .core.exceptions import setup_exception_handlers
from .core.logging import setup_logging, get_logger
from .routes import ratings

setup_logging()
logger = get_logger(__name__)

app = FastAPI(title=settings.app_name, debug=settings.debug)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

app.include_router(ratings.router, prefix="/api/v1/ratings", tags=["ratings"])


@app.get("/health")
def health_check():
    return {"status": "healthy", "app": settings.app_name}


logger.info(f"{settings.app_name} started")
