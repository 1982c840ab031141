from typing import Union
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Backend (PostgREST / Supabase project)
    supabase_url: str = "http://localhost:54321"
    supabase_key: str = "change-me"
    backend_timeout_seconds: float = 15.0

    # App
    app_env: str = "development"
    debug: bool = True
    # Can be a comma-separated string or list
    cors_allowed_origins: Union[str, list[str]] = "http://localhost:3000,http://localhost:5173"

    # Logging: "text" or "json"
    log_level: str = "INFO"
    log_format: str = "text"

    # Reports
    report_page_size: int = 10
    institution_name: str = "University of Dhaka"
    institution_short_name: str = "DU"
    program_name: str = "PMICS"
    currency: str = "BDT"
    export_filename_prefix: str = "PMICS_Financial_Report"

    # Schedules
    default_remuneration: int = 1000
    calendar_start_hour: int = 8
    calendar_end_hour: int = 19

    @property
    def report_title(self) -> str:
        """Heading used on exported reports."""
        return f"{self.program_name} Program - Financial Report"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @field_validator("supabase_url", mode="before")
    @classmethod
    def normalize_supabase_url(cls, v):
        """Strip trailing slash so paths can be joined as /rest/v1/..."""
        if not v:
            raise ValueError("SUPABASE_URL is required")
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("report_page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Report page size must be at least 1")
        return v


settings = Settings()
