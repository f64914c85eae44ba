from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "Catering Portal API"
    BUSINESS_NAME: str = "Catering Co."
    # Comma-separated origins for CORS. If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str = "change-me"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    DATABASE_URL: str = "sqlite:///./catering.db"

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v

    # Media host (multipart POST, returns secure_url)
    MEDIA_UPLOAD_URL: str = ""  # e.g. https://api.cloudinary.com/v1_1/<cloud>/image/upload
    MEDIA_UPLOAD_PRESET: str = ""
    MEDIA_MAX_BYTES: int = 5 * 1024 * 1024

    CURRENCY_SYMBOL: str = "₱"


settings = Settings()
