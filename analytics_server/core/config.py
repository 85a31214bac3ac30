# analytics_server/core/config.py
from __future__ import annotations
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_env: str = "dev"
    api_host: str = "0.0.0.0"
    api_port: int = 9095

    # Trust X-Forwarded-* for the client address
    behind_proxy: bool = False
    enable_gzip: bool = True
    log_level: str = "INFO"

    # Secrets (SHARED_SECRET / ADMIN_PASSWORD)
    shared_secret: str = ""
    admin_username: str = "admin"
    admin_password: str = ""

    # Append log
    data_dir: str = "./"
    results_filename: str = "results.json"

    # Ingest limits
    max_body_bytes: int = 1 << 20
    freshness_window_seconds: int = 600

    def results_path(self) -> Path:
        return Path(self.data_dir) / self.results_filename

def get_settings() -> Settings:
    return Settings()
