"""
Configuration management using Pydantic BaseSettings.
All values can be overridden via environment variables or a .env file.
"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Entity store (MySQL-protocol compatible) ───────────────────────────
    db_host: str = "mysql"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "social_index"
    db_pool_size: int = 20
    db_max_overflow: int = 10
    # Full SQLAlchemy URL; takes precedence over the db_* fields when set.
    # e.g. "sqlite+aiosqlite:///./social_index.db"
    database_url: Optional[str] = None

    @property
    def store_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"mysql+aiomysql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # ── Read API ───────────────────────────────────────────────────────────
    trending_limit: int = 10
    search_limit: int = 20

    # ── Notifications ──────────────────────────────────────────────────────
    comment_preview_length: int = 30
    tip_currency: str = "ETH"

    # ── Ledger (JSON-RPC) ──────────────────────────────────────────────────
    ledger_rpc_url: str = "http://localhost:8545"
    ledger_rpc_timeout: float = 5.0
    contract_address: Optional[str] = None

    # ── Observability ──────────────────────────────────────────────────────
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    tracing_enabled: bool = True
    service_name: str = "social-index"
    environment: str = "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
