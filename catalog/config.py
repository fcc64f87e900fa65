from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from typing import List, Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # App
    APP_NAME: str = "Storefront Catalog"
    APP_VERSION: str = "2.0.0"
    DEBUG: bool = False

    # Database - REQUIRED from environment
    DATABASE_URL: str = Field(
        ...,  # No default - must be provided via environment variable
        description="Database connection URL (REQUIRED)"
    )
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE_SECONDS: int = 1800

    # Security - REQUIRED from environment
    SECRET_KEY: str = Field(
        ...,
        min_length=32,
        description="Secret key for JWT tokens (REQUIRED - minimum 32 characters)"
    )
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Catalog listing defaults
    DEFAULT_PRODUCT_STATUS: str = "published"
    DEFAULT_PRODUCT_VISIBILITY: str = "public"
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100
    ATTRIBUTE_PAGE_SIZE: int = 50

    # Facet computation
    FACET_MAX_CONCURRENCY: int = Field(8, ge=1)
    FACET_TIMEOUT_SECONDS: float = Field(5.0, gt=0)

    # Product highlights
    RELATED_PRODUCTS_LIMIT: int = 4
    NEW_PRODUCTS_DAYS: int = 30
    HIGHLIGHT_LIMIT: int = 10
    SUGGESTIONS_LIMIT: int = 5

    # Echo raw storage error messages to clients (defaults to DEBUG)
    EXPOSE_STORAGE_ERRORS: Optional[bool] = None

    # CORS
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ])

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: str = "120/minute"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _assemble_cors_origins(cls, value):
        """Ensure CORS origins env value always becomes a list of strings."""
        if isinstance(value, str):
            # Support JSON-style lists or simple comma-separated strings
            value = value.strip()
            if value.startswith("[") and value.endswith("]"):
                import json
                return json.loads(value)
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        if isinstance(value, (list, tuple)):
            return list(value)
        return value

    @property
    def expose_storage_errors(self) -> bool:
        if self.EXPOSE_STORAGE_ERRORS is None:
            return self.DEBUG
        return self.EXPOSE_STORAGE_ERRORS


settings = Settings()
