# pinboard/core/config.py
# Runtime settings for the pin map service, read from the environment and .env

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List, Optional

DEFAULT_AUTH_SECRET = "change-me"

class Settings(BaseSettings):
    PROJECT_NAME: str = "BaanPoolVilla Pinboard"
    VERSION: str = "0.2.0"
    BRIEF_DESCRIPTION: str = "Shared map pins for rental properties, enriched with occupancy data from the booking calendar."

    ENV: str = Field("development", description="Application environment (e.g., production, development)")
    LOG_LEVEL: str = Field("INFO", description="Root log level")

    # --- Property feed (booking calendar) ---
    PROPERTY_FEED_URL: str = Field(
        "https://baanpoolvilla-calendar.vercel.app/api/houses",
        description="Endpoint returning the property list as a JSON array",
    )
    PROPERTY_FEED_TIMEOUT: float = Field(8.0, description="Seconds before a feed request is abandoned")
    BOOKING_BASE_URL: str = Field(
        "https://baanpoolvilla-calendar.vercel.app/?house=",
        description="Prefix for booking links; the url-encoded house key is appended",
    )
    EXTERNAL_PIN_PREFIX: str = Field("calendar-", description="Id prefix reserved for pins synthesized from the feed")

    # --- Sharing ---
    APP_BASE_URL: str = Field("http://localhost:8000/", description="Public URL of the map page")
    SHARE_PARAM: str = Field("pin", description="Query parameter carrying the shared pin id")

    # --- Layout ---
    # Degrees, not meters. Offset must stay larger than the threshold.
    DECLUTTER_THRESHOLD: float = 0.0005
    DECLUTTER_OFFSET: float = 0.0008
    DEFAULT_CENTER: List[float] = Field(
        [13.7563, 100.5018],  # Bangkok
        description="Map center [lat, lng] used when there are no pins",
    )

    # --- Persistence ---
    REDIS_URL: Optional[str] = Field(None, description="Redis URL for the pin store")
    ENABLE_REDIS: bool = Field(False, description="Feature flag for the Redis pin store")
    PIN_STORE_NAMESPACE: str = "pins"

    # --- Authentication ---
    AUTH_SERVICE_URL: Optional[str] = Field(None, description="Remote login endpoint; local credentials are used when unset")
    AUTH_TIMEOUT: float = 5.0
    STAFF_USERNAME: str = Field("staff", description="Local staff login")
    STAFF_PASSWORD: Optional[str] = Field(None, description="Local staff password; local login is disabled when unset")
    AUTH_SECRET: str = Field(DEFAULT_AUTH_SECRET, description="HMAC secret for locally issued tokens; must be changed in production")
    REMOTE_TOKEN_TTL: float = Field(12 * 3600, description="Seconds a token issued by the remote login service is honoured")
    REMOTE_TOKEN_LIMIT: int = Field(1000, description="Most remote tokens remembered at once; the oldest are dropped first")

    # Pydantic configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
