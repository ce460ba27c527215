from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Needed to write notifications for other users

    # Expo push gateway
    expo_push_url: str = "https://exp.host/--/api/v2/push/send"
    expo_access_token: Optional[str] = None  # Only when "enhanced push security" is enabled in Expo
    push_batch_size: int = 100  # Expo API limit per request
    push_timeout_seconds: float = 10.0

    # Geolocation
    ip_geolocation_url: str = "https://ipapi.co/json/"
    ip_geolocation_timeout_seconds: float = 8.0
    geocoding_url: str = "https://nominatim.openstreetmap.org/search"
    geocoding_user_agent: str = "clap-serv-backend/1.0"
    geocoding_country: str = "India"
    geocoding_timeout_seconds: float = 10.0
    geocoding_cache_ttl_seconds: int = 3600

    # Chat attachments (Supabase Storage)
    chat_attachments_bucket: str = "chat-attachments"
    signed_url_expiry_seconds: int = 3600

    # AWS S3 (optional attachment store; will read from uppercase env vars automatically)
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "ap-south-1"
    s3_bucket_name: Optional[str] = None

    # Notification fan-out
    notification_workers: int = 8

    # App
    app_name: str = "clap-serv-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:8081,http://localhost:19006,http://127.0.0.1:8081,http://127.0.0.1:19006"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
