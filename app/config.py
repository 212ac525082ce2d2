from typing import List
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    ENV: str = "local"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///./planti_orders.db"
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = ""
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    HOST: str = "0.0.0.0"
    PORT: int = 5000
    API_PREFIX: str = "/api"
    FRONTEND_URL: str = ""
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:3001"]

    # order policy
    DELIVERY_FEE: float = 7
    ORDER_NUMBER_PREFIX: str = "PL"
    ESTIMATED_DELIVERY_DAYS: int = 3
    DEFAULT_PAYMENT_METHOD: str = "cash_on_delivery"
    CURRENCY: str = "TND"

    # email
    BREVO_API_KEY: str = ""
    MAIL_FROM: str = "orders@planti.tn"
    STORE_NAME: str = "Planti Orders"
    ADMIN_EMAILS: List[str] = []

    @property
    def database_url(self):
        if not self.postgres_db:
            return self.DATABASE_URL

        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def allowed_origins(self):
        origins = list(self.CORS_ORIGINS)
        if self.FRONTEND_URL:
            origins.insert(0, self.FRONTEND_URL)
        return origins

    @property
    def is_production(self):
        return self.ENV == "production"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"

settings = Settings()
