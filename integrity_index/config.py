"""
Configuration management for Integrity Index.

Supports multiple environments (local, development, production) with
different database and upstream source configurations.

Responsibility: Centralized configuration and environment management
"""

from enum import Enum
from pathlib import Path
from typing import Optional, List
import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


PACKAGE_DIR = Path(__file__).resolve().parent


class Environment(str, Enum):
    """Deployment environment"""
    LOCAL = "local"
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class DatabaseConfig(BaseSettings):
    """Database configuration"""

    # Connection settings - prioritize DATABASE_URL env var
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    driver: str = Field(default="postgresql+asyncpg")
    host: Optional[str] = Field(default="localhost")
    port: Optional[int] = Field(default=5432)
    database: str = Field(default="integrity_index")
    username: Optional[str] = Field(default=None)
    password: Optional[str] = Field(default=None)

    # Connection pool settings
    pool_size: int = Field(default=5)
    max_overflow: int = Field(default=10)
    pool_timeout: int = Field(default=30)
    pool_recycle: int = Field(default=3600)

    # Query settings
    echo: bool = Field(default=False)
    echo_pool: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )

    @property
    def connection_string(self) -> str:
        """
        Build database connection string.

        Returns:
            SQLAlchemy connection string
        """
        if self.database_url:
            url = self.database_url
            # Hosted Postgres providers hand out sync URLs
            if url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql://", 1)
            if url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            return url

        if self.driver.startswith("sqlite"):
            # Local file database, e.g. DB_DATABASE=./integrity.db
            return f"{self.driver}:///{self.database}"

        auth = ""
        if self.username:
            auth = self.username
            if self.password:
                auth = f"{auth}:{self.password}"
            auth = f"{auth}@"

        host_port = self.host or "localhost"
        if self.port:
            host_port = f"{host_port}:{self.port}"

        return f"{self.driver}://{auth}{host_port}/{self.database}"


class SyncConfig(BaseSettings):
    """Sync orchestrator knobs"""

    time_budget_seconds: float = Field(default=50.0)
    batch_size: int = Field(default=10)
    disclosure_sample_size: int = Field(default=5)
    disclosure_rows_per_member: int = Field(default=3)
    quote_symbol_limit: int = Field(default=20)
    federal_target: int = Field(default=343)
    provincial_target: int = Field(default=124)
    audit_bill_limit: int = Field(default=100)
    fallback_roster_path: Path = Field(default=PACKAGE_DIR / "data" / "members_safe_roster.json")
    cron_schedule: str = Field(default="0 6 * * *")

    model_config = SettingsConfigDict(
        env_prefix="SYNC_",
        case_sensitive=False,
        extra="ignore"
    )


class SourcesConfig(BaseSettings):
    """Upstream data source endpoints and credentials"""

    ciec_base_url: str = Field(default="https://ciec-ccie.parl.gc.ca/en/public-registries/Pages/Declaration.aspx")
    ourcommons_csv_url: str = Field(default="https://www.ourcommons.ca/members/en/search/csv")
    ourcommons_json_url: str = Field(default="https://www.ourcommons.ca/en/members/export/json")
    # Official portraits of the current Parliament, keyed by member official id
    federal_photo_url_template: str = Field(
        default="https://www.ourcommons.ca/Content/Parliamentarians/Images/OfficialMPPhotos/45/{official_id}.jpg"
    )
    ontario_roster_url: str = Field(
        default="https://represent.opennorth.ca/representatives/ontario-legislature/?format=json&limit=150"
    )
    legisinfo_overview_url: str = Field(default="https://www.parl.ca/legisinfo/en/overview/xml")
    committee_api_base: str = Field(default="https://api.openparliament.ca/committees")
    finnhub_base_url: str = Field(default="https://finnhub.io/api/v1")
    finnhub_api_key: Optional[str] = Field(default=None, alias="FINNHUB_API_KEY")

    http_timeout_seconds: float = Field(default=8.0)
    user_agent: str = Field(default="IntegrityIndex/1.0 (+https://github.com/integrity-index)")

    model_config = SettingsConfigDict(
        env_prefix="SOURCE_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )


class AppConfig(BaseSettings):
    """Application configuration"""

    # Environment
    environment: Environment = Field(default=Environment.LOCAL)
    debug: bool = Field(default=True)

    # Application metadata
    app_name: str = Field(default="Integrity Index")
    app_version: str = Field(default="1.0.0")

    # Logging
    log_level: str = Field(default="INFO")

    # API settings
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)

    # Shared secret for scheduled sync triggers (Bearer token)
    cron_secret: Optional[str] = Field(default=None, alias="CRON_SECRET")

    # CORS settings
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins (JSON list or comma-separated in env)"
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from JSON string or comma-separated list"""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            v = v.strip()
            if (v.startswith('"') and v.endswith('"')) or (v.startswith("'") and v.endswith("'")):
                v = v[1:-1]
            if v.startswith("["):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


class Settings(BaseSettings):
    """
    Global settings container.

    Loads configuration from:
    1. Environment variables
    2. .env file
    3. Default values
    """

    app: AppConfig = Field(default_factory=AppConfig)
    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    sources: SourcesConfig = Field(default_factory=SourcesConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
