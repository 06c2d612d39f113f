"""
Configuration management.
Simple .env based config - the hosted backend holds all business data.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # Security
    session_secret: str = "change-me-in-production-use-random-string"

    # Hosted backend
    backend_url: str = "http://localhost:54321"
    backend_api_key: str = ""  # public (anon) API key
    request_timeout: float = 30.0

    # Local cart store
    database_path: str = "./data/carts.db"
    cart_max_age_hours: int = 24

    # Store details printed on invoices
    store_name: str = "RetailPOS"
    store_address: str = ""
    store_phone: str = ""

    # Checkout
    tax_rate: float = 0.08

    # Screens
    invoice_history_limit: int = 50
    low_stock_preview: int = 5

    # Scheduled report credentials (scripts/daily_report.py)
    report_email: str = ""
    report_password: str = ""

    # Logging
    log_level: str = "INFO"


# Global settings instance
settings = Settings()
