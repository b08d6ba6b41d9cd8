"""Worker configuration."""

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Worker settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PARCEL_WATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Remote services
    content_url: str = "https://content.decentraland.org"
    builder_url: str = "https://builder-api.decentraland.org"
    twitter_api_url: str = "https://api.twitter.com"
    twitter_upload_url: str = "https://upload.twitter.com"
    request_timeout_seconds: float = 30.0

    # Twitter credentials (OAuth 1.0a user context)
    consumer_key: str = ""
    consumer_secret: str = ""
    access_token_key: str = ""
    access_token_secret: str = ""

    # Snapshot state
    snapshot_path: str = "data/deployments.json"

    # Grid scan
    grid_min: int = -150
    grid_max: int = 150
    tile_size: int = 13
    max_tile_attempts: int = 10  # 0 = retry until the tile resolves

    # Publishing
    post_delay_seconds: float = 10.0
    dry_run: bool = False

    # Schedule
    run_interval_hours: int = 6
    run_on_start: bool = False

    # Logging
    log_level: str = "info"

    @field_validator("tile_size")
    @classmethod
    def check_tile_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("tile_size must be positive")
        return v

    @field_validator("run_interval_hours")
    @classmethod
    def check_run_interval(cls, v: int) -> int:
        """Interval must split the day evenly so runs land on fixed hours."""
        if v <= 0 or 24 % v != 0:
            raise ValueError("run_interval_hours must be a divisor of 24")
        return v

    @model_validator(mode="after")
    def check_grid_bounds(self) -> "Settings":
        if self.grid_min >= self.grid_max:
            raise ValueError("grid_min must be lower than grid_max")
        return self


settings = Settings()
