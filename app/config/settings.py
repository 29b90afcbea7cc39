from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for automation writes that must bypass RLS

    # Automation
    webhook_timeout_seconds: float = 10.0
    automation_rules_table: str = "automation_rules"
    automation_logs_table: str = "automation_logs"

    # RBAC
    dev_bypass: bool = False  # DEV_BYPASS=1, ignored in production
    admin_bypass: bool = False  # ADMIN_BYPASS=1, ignored in production

    # App
    app_name: str = "nino360-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @property
    def bypass_requested(self) -> bool:
        return self.dev_bypass or self.admin_bypass

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
