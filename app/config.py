from typing import List, Optional
from pydantic_settings import BaseSettings
from urllib.parse import quote_plus

class Settings(BaseSettings):
    ENV: str = "production"
    LOG_LEVEL: str = "INFO"

    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "storefront"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # full URL override, used by tests and local sqlite runs
    SQLALCHEMY_URL: Optional[str] = None

    # identity provider tokens
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    TOKEN_AUDIENCE: Optional[str] = None
    TOKEN_ISSUER: Optional[str] = None
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    R2_ACCOUNT_ID: str = ""
    R2_ACCESS_KEY_ID: str = ""
    R2_SECRET_ACCESS_KEY: str = ""
    R2_BUCKET_NAME: str = "course-notes"

    BLOB_TIMEOUT_SECONDS: float = 10.0
    BLOB_MAX_ATTEMPTS: int = 3

    ACCESS_WINDOW_HOURS: int = 6
    DOWNLOAD_URL_TTL_SECONDS: int = 900

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @property
    def database_url(self):
        if self.SQLALCHEMY_URL:
            return self.SQLALCHEMY_URL
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def r2_endpoint_url(self):
        return f"https://{self.R2_ACCOUNT_ID}.r2.cloudflarestorage.com"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"

settings = Settings()
