"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    allowed_origins: str = Field(default="*", description="Comma separated CORS origins")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (json or console)")

    # Planet Generation Configuration
    default_tile_count: int = Field(default=1280, description="Default number of tiles")
    default_plate_count: int = Field(default=16, description="Default number of plates")
    default_jitter: float = Field(default=0.5, description="Default point jitter")
    default_algorithm: int = Field(default=1, description="Default spiral algorithm")
    default_radius: float = Field(default=6400.0, description="Default planet radius in km")
    max_tile_count: int = Field(default=128000, description="Max allowed tile count")

    # Storage Configuration
    max_stored_planets: int = Field(default=10, description="Planets kept in memory")
    max_stored_jobs: int = Field(default=100, description="Generation jobs kept in memory")

    @property
    def cors_origins(self) -> list:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


settings = Settings()
