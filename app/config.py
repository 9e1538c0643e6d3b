from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Supabase
    supabase_url: str
    supabase_key: str

    # Firebase (service account из переменных окружения)
    firebase_project_id: str | None = None
    firebase_private_key_id: str | None = None
    firebase_private_key: str | None = None
    firebase_client_email: str | None = None
    firebase_client_id: str | None = None
    firebase_client_cert_url: str | None = None
    firebase_credentials_file: str | None = None

    # Push
    notification_title: str = "📢 System Announcement"
    fcm_batch_size: int = 500  # лимит send_each_for_multicast

    # Tables
    users_table: str = "users"
    doctors_table: str = "doctors"
    chws_table: str = "chws"
    broadcasts_table: str = "broadcast_notifications"
    partition_page_size: int = 1000

    # History
    history_default_limit: int = 10
    history_max_limit: int = 100

    # Redis (optional, только для rate limiting)
    redis_url: str | None = None

    # App settings
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False
    enable_debug_routes: bool = False

    # Rate limiting
    rate_limit_enabled: bool = True
    broadcast_rate_limit: str = "10/minute"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
