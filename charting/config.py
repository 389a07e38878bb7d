"""Service settings, read from CHART_SERVICE_* environment variables."""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CHART_SERVICE_",
        env_file=".env",
        extra="ignore",
    )

    service_name: str = "Dataset Charting Service"

    # Storage
    upload_dir: str = "uploads"

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    reload: bool = False
    log_level: str = "info"

    # Charts
    renderer: str = "plotly"  # plotly or matplotlib
    default_chart_type: str = "bar"
    grouped_bar_columns: List[str] = ["Inpatient Physician", "Outpatient Physician"]
    chart_width: int = 800
    chart_height: int = 500


@lru_cache
def get_settings() -> Settings:
    return Settings()
