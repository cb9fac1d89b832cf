from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # === DATABASE ===
    DATABASE_URL: str = Field(default="sqlite:///./moyoclub.db", description="SQLAlchemy database URL")

    # === SESSION (JWT) ===
    SECRET_KEY: str = Field(default="change-me-in-production", description="Secret key for session token signing")
    ALGORITHM: str = Field(default="HS256", description="JWT algorithm")
    SESSION_EXPIRE_DAYS: int = Field(default=30, description="Session token lifetime in days")

    # === OTP ===
    OTP_EXPIRY_MINUTES: int = Field(default=10, description="One-time code validity in minutes")

    # === EMAIL ===
    EMAIL_HOST: str = Field(default="", description="SMTP host")
    EMAIL_PORT: int = Field(default=587, description="SMTP port")
    EMAIL_HOST_USER: str = Field(default="", description="SMTP username")
    EMAIL_HOST_PASSWORD: str = Field(default="", description="SMTP password")
    EMAIL_FROM: str = Field(default="noreply@moyoclub.one", description="Email sender address")
    EMAIL_FROM_NAME: str = Field(default="MoyoClub", description="Email sender display name")
    USE_MOCK_EMAIL: bool = Field(default=False, description="Record emails in memory instead of sending them")

    # === HTTP ===
    CORS_ORIGINS: List[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "https://app.dev-moyoclub.one",
        ],
        description="Origins allowed by CORS",
    )

    # === DEBUG MODE ===
    DEBUG: bool = Field(default=True, description="Debug mode")

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Settings for the process entrypoint; tests build their own."""
    return Settings()
