"""Configuration and settings"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Google Places API
    google_maps_api_key: str = ""
    google_places_base_url: str = "https://maps.googleapis.com/maps/api/place"
    google_request_timeout: float = 20.0
    google_max_retries: int = Field(default=3, ge=1)

    # Datastore
    database_backend: str = "mongo"  # "mongo" or "memory"
    mongodb_uri: str = "mongodb://localhost:27017/kingston-fyi"
    mongodb_db: str = "kingston-fyi"
    mongodb_max_pool_size: int = 10
    mongodb_server_selection_timeout_ms: int = 5000

    # Authentication
    admin_api_key: str = ""
    trust_identity_headers: bool = False

    # Frontend
    frontend_url: str = "http://localhost:3000"

    # Environment
    environment: str = "development"
    log_level: str = "INFO"

    # Listing defaults for submissions that leave fields out
    default_city: str = "Kingston"
    default_province: str = "ON"
    default_country: str = "Canada"
    default_latitude: float = 44.2312
    default_longitude: float = -76.4816
    placeholder_image: str = "/images/placeholder-place.jpg"

    # API Configuration
    api_title: str = "Kingston Directory API"
    api_version: str = "0.1.0"

    @property
    def google_configured(self) -> bool:
        return bool(self.google_maps_api_key)


# Global settings instance
settings = Settings()
