from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str

    # Auth
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 720
    JWT_REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    BCRYPT_ROUNDS: int = 12

    # Password reset
    RESET_CODE_TTL_MINUTES: int = 10
    RESET_MAX_ATTEMPTS: int = 5
    RESET_LOCK_MINUTES: int = 15
    RESET_LINK_BASE_URL: str = "https://mindcare.app/resetPassword"

    # Places search
    GOOGLE_PLACES_API_KEY: str = ""
    PLACES_SEARCH_RADIUS_M: int = 5000
    PLACES_TIMEOUT_SECONDS: float = 10.0
    GEO_CACHE_TTL_HOURS: int = 6
    GEO_CACHE_PRECISION: int = 3

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    ENABLE_REDIS: bool = True
    CONTENT_CACHE_TTL_SECONDS: int = 300

    # Email (SendGrid)
    SENDGRID_API_KEY: str = ""
    SENDGRID_SENDER: str = "no-reply@mindcare.app"
    SUPPORT_INBOX: str = "support@mindcare.app"

    # Push (Firebase Cloud Messaging, service-account key file)
    FIREBASE_CREDENTIALS_PATH: str = ""

    # Image hosting (Cloudinary)
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    # Content feeds
    YOUTUBE_API_KEY: str = ""
    YOUTUBE_SEARCH_QUERY: str = "meditação, saúde mental"
    NEWS_API_KEY: str = ""
    NEWS_SEARCH_QUERY: str = "saúde mental OR saúde emocional OR ansiedade OR depressão"

    # Cleanup job
    CLEANUP_ENABLED: bool = True
    CLEANUP_INTERVAL_HOURS: int = 24
    ACCOUNT_DELETION_GRACE_DAYS: int = 30
    REJECTED_CONTENT_GRACE_DAYS: int = 7


settings = Settings()
