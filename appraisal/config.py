# appraisal/config.py
from pydantic_settings import BaseSettings
from typing import Optional
from pydantic import Field

class Settings(BaseSettings):
    SECRET_KEY: str = Field("change-me-in-production")
    ALGORITHM: str = Field("HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(30)

    DATABASE_URL: str
    SQLALCHEMY_DATABASE_URL: Optional[str] = None
    SQL_ECHO: bool = Field(False)

    LOG_LEVEL: str = Field("INFO")

    # Used to build links inside notification emails
    APP_BASE_URL: str = Field("http://localhost:3000")

    # Mail transport. EMAIL_ENABLED=false turns every send into a logged no-op.
    EMAIL_ENABLED: bool = Field(False)
    EMAIL_DEBUG: bool = Field(False)
    EMAIL_FROM: str = Field("noreply@appraisal.local")
    EMAIL_FROM_NAME: str = Field("Performance Appraisal")
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = Field(465)
    SMTP_SECURE: bool = Field(True)
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None

    model_config = {
        "env_file": ".env",
        "extra": "allow",
    }

    @property
    def effective_database_url(self) -> str:
        return self.SQLALCHEMY_DATABASE_URL or self.DATABASE_URL

settings = Settings()
