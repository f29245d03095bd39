from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application Config
    PROJECT_NAME: str = Field(default="Lifelink API", env="PROJECT_NAME")
    PROJECT_DESCRIPTION: str = Field(
        default="Blood donation coordination backend", env="PROJECT_DESCRIPTION"
    )
    VERSION: str = Field(default="1.0.0", env="VERSION")
    API_PREFIX: str = Field(default="", env="API_PREFIX")
    DOCS_URL: str = Field(default="/docs", env="DOCS_URL")

    # Environment
    ENVIRONMENT: str = Field(default="development", env="ENVIRONMENT")
    DEBUG: bool = Field(default=True, env="DEBUG")

    # Database
    DATABASE_URL: str = Field(default="", env="DATABASE_URL")
    DATABASE_POOL_SIZE: int = Field(default=5, env="DATABASE_POOL_SIZE")
    DATABASE_MAX_OVERFLOW: int = Field(default=10, env="DATABASE_MAX_OVERFLOW")
    AUTO_CREATE_TABLES: bool = Field(default=True, env="AUTO_CREATE_TABLES")

    # Development database fallback
    DEV_DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./lifelink.sqlite3", env="DEV_DATABASE_URL"
    )

    # Setup checks (seconds)
    DATABASE_CHECK_TIMEOUT_SECONDS: float = Field(
        default=5.0, env="DATABASE_CHECK_TIMEOUT_SECONDS"
    )
    TABLE_CHECK_TIMEOUT_SECONDS: float = Field(
        default=3.0, env="TABLE_CHECK_TIMEOUT_SECONDS"
    )

    # Security
    SECRET_KEY: str = Field(default="dev-secret-key", env="SECRET_KEY")
    ALGORITHM: str = Field(default="HS256", env="ALGORITHM")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(
        default=180, env="ACCESS_TOKEN_EXPIRE_MINUTES"
    )

    # CORS Configuration
    # Comma-separated list of allowed origins
    BACKEND_CORS_ORIGINS: str = Field(
        default="http://localhost:3000,http://localhost:5173,http://localhost",
        env="BACKEND_CORS_ORIGINS",
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", env="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=True, env="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", env="LOG_DIR")

    # Admin Configuration
    SYS_ADMIN: str = Field(default="admin@example.com", env="SYS_ADMIN")
    SYS_ADMIN_PASS: str = Field(default="admin123", env="SYS_ADMIN_PASS")
    SEED_PLATFORM_ADMIN: bool = Field(default=True, env="SEED_PLATFORM_ADMIN")
    ADMIN_PATH: str = Field(default="/admin", env="ADMIN_PATH")
    ENABLE_ADMIN: bool = Field(default=True, env="ENABLE_ADMIN")

    # Donor matching
    DEFAULT_DONOR_SEARCH_RADIUS_KM: float = Field(
        default=50.0, env="DEFAULT_DONOR_SEARCH_RADIUS_KM"
    )
    COMMUNITY_FEED_LIMIT: int = Field(default=10, env="COMMUNITY_FEED_LIMIT")

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    def model_post_init(self, __context) -> None:
        """Post-initialization validation and setup"""
        if self.ENVIRONMENT.lower() == "production":
            if not self.DATABASE_URL:
                raise ValueError("DATABASE_URL must be set in production!")
            if not self.SECRET_KEY or self.SECRET_KEY == "dev-secret-key":
                raise ValueError(
                    "SECRET_KEY must be set to a secure value in production!"
                )
            if self.SEED_PLATFORM_ADMIN and self.SYS_ADMIN_PASS == "admin123":
                raise ValueError(
                    "SYS_ADMIN_PASS must be changed before seeding a platform admin in production!"
                )
        else:
            # Fall back to the local SQLite file when no URL is configured
            if not self.DATABASE_URL:
                self.DATABASE_URL = self.DEV_DATABASE_URL

    @property
    def cors_origins(self) -> list[str]:
        return [
            origin.strip()
            for origin in self.BACKEND_CORS_ORIGINS.split(",")
            if origin.strip()
        ]


settings = Settings()
