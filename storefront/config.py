from typing import Optional
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENV: str = "local"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: Optional[str] = None
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_db: str = "storefront"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # CORS origin, also the base of the payment callback/return URLs
    CLIENT_URL: str = "http://localhost:3000"

    DISCOUNT_RATE: float = 0.10
    TAX_RATE: float = 0.10
    STANDARD_SHIPPING_COST: float = 5.00
    EXPRESS_SHIPPING_COST: float = 15.00
    TOTAL_TOLERANCE: float = 0.01
    CURRENCY: str = "ETB"

    CHAPA_PUBLIC_KEY: Optional[str] = None
    CHAPA_SECRET_KEY: Optional[str] = None
    CHAPA_BASE_URL: str = "https://api.chapa.co/v1"
    CHAPA_TIMEOUT: int = 10

    @property
    def database_url(self):
        if self.DATABASE_URL:
            return self.DATABASE_URL
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def payment_verification_enabled(self) -> bool:
        return bool(self.CHAPA_SECRET_KEY)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"


settings = Settings()
