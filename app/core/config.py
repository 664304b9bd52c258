from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        validate_assignment=True,
    )

    app_env: str = "dev"
    database_url: str = "sqlite:///./sports_travel.db"
    log_level: str = "INFO"

    # Quotes
    default_currency: str = "USD"
    supported_currencies: list[str] = ["USD", "EUR", "GBP", "INR"]
    quote_expiry_days: int = 30
    max_travelers: int = 50

    # Default seasonal calendar (month -> rate as a fraction of base price).
    # Used when an event has no season months of its own. Override per deployment
    # with SEASONAL_CALENDAR='{"6": 0.2, "7": 0.2, "12": 0.2}'.
    seasonal_calendar: dict[int, float] = {
        4: 0.10,
        5: 0.10,
        6: 0.20,
        7: 0.20,
        9: 0.10,
        12: 0.20,
    }

    # Email (quote delivery)
    email_dry_run: bool = True  # Set to False in production to enable real sending
    email_from: str = "noreply@sports-travel.com"
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None


# Settings will load from environment variables or .env file
settings = Settings()
