from typing import Optional, List
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.core.constants import Environment


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Environment Profile
    environment: Environment = Environment.LOCAL

    # API Settings
    app_name: str = "quota-station"
    api_version: str = "0.1.0"
    debug: bool = False

    # Platform Database Components
    db_user: str
    db_password: str
    db_host: str
    db_port: int
    db_name: str
    db_use_nullpool: bool = (
        False  # True for workers (sequential), False for API (concurrent)
    )
    db_pool_size: int = 10
    db_pool_overflow: int = 5

    @property
    def database_url(self) -> str:
        """Construct database URL from components."""
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    # Ledger store (external user database, mysql:// mariadb:// postgres:// postgresql://)
    ledger_database_url: str
    ledger_pool_size: int = 5
    ledger_pool_overflow: int = 5

    # OpenTelemetry
    otel_service_name: str = "quota-station"
    otel_service_version: str = "0.1.0"

    # Axiom (exporters are only attached when a token is configured)
    axiom_token: Optional[str] = None
    axiom_dataset: Optional[str] = None

    # Redemption codes
    redemption_code_secret: str
    redemption_code_issuer: str = "quota_station_redemption"

    # Bearer tokens minted by the session layer
    session_token_secret: str
    session_token_issuer: str = "quota_station_session"
    session_token_audience: str = "quota_station_api"

    # Expiry sweep
    expiry_sweep_interval_seconds: int = 300

    # Billing - Stripe (payments)
    stripe_secret_key: str = ""
    stripe_publishable_key: str = ""
    stripe_webhook_secret: str = ""

    @property
    def cors_allowed_origins(self) -> List[str]:
        """Auto-select CORS origins based on environment."""
        if self.environment == Environment.LOCAL:
            return [
                "http://localhost:3000",
                "http://localhost:3001",
            ]
        return [
            "https://quota-station.app",
            "https://api.quota-station.app",
        ]


settings = Settings()
