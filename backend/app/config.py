"""
Application configuration settings
"""

from pydantic_settings import BaseSettings
from pydantic import computed_field
from functools import lru_cache
from typing import List
from urllib.parse import quote_plus


class Settings(BaseSettings):
    # Database Configuration (Individual Parameters)
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str
    db_user: str = ""
    db_password: str = ""
    db_driver: str = "postgresql"

    @computed_field
    @property
    def database_url(self) -> str:
        """Compile database URL from individual parameters"""
        # SQLite only needs the file name (or ":memory:")
        if self.db_driver.startswith("sqlite"):
            if self.db_name == ":memory:":
                return f"{self.db_driver}://"
            return f"{self.db_driver}:///{self.db_name}"

        encoded_user = quote_plus(self.db_user)
        encoded_password = quote_plus(self.db_password)

        # For Cloud SQL Unix sockets the socket path goes through connect_args in database.py
        if self.db_host.startswith('/cloudsql/'):
            return f"{self.db_driver}://{encoded_user}:{encoded_password}@/{self.db_name}"
        return f"{self.db_driver}://{encoded_user}:{encoded_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    # Security (Required from environment)
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # Application
    app_name: str = "Seller Ratings"
    debug: bool = False

    # CORS - loaded from environment
    allowed_origins: str = ""

    # Ratings
    positive_rating_threshold: int = 4  # ratings >= this count as positive
    max_comment_length: int = 1000
    aggregate_score_tolerance: float = 0.01  # verifier tolerance on seller_rating
    score_display_min_ratings: int = 3  # below this the score shows a rating count instead
    recent_ratings_limit: int = 5

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_to_file: bool = False
    log_file_path: str = "logs/app.log"
    log_max_size_mb: int = 10
    log_backup_count: int = 5
    log_to_console: bool = True
    log_verbosity: str = "minimal"  # "minimal" or "full" - full also echoes SQL

    def get_allowed_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.allowed_origins.split(',') if origin.strip()]

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_settings():
    return Settings()


settings = get_settings()
