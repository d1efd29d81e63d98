from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    project_name: str = "ticket-pulse"
    database_url: str = "sqlite:///./tickets.db"

    # bearer token the browser extension sends with every ingest call
    dashboard_token: str = "dev-dashboard-token"

    # fixed UTC offset (minutes) that defines the dashboard's "day"
    day_offset_minutes: int = 0

    support_inbox_url: str = "https://admin.worldhost.group/admin/support/inbox"
    notification_message_limit: int = 280

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    log_level: str = "INFO"
    log_json: bool = False


settings = Settings()


def get_day_offset_minutes() -> int:
    return settings.day_offset_minutes
