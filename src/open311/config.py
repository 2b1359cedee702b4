"""Open311 client configuration. Defaults are read from OPEN311_* env vars or .env."""

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Default connection, used by Open311() with no arguments
    endpoint: str | None = None
    format: str = "json"
    jurisdiction: str | None = None
    discovery: str | None = None
    city: str | None = None

    # Required only for submitting service requests
    api_key: str = ""

    @model_validator(mode="after")
    def _strip_api_key(self) -> "Settings":
        """Strip whitespace/newlines from the API key (a common paste error)."""
        if self.api_key and self.api_key != self.api_key.strip():
            self.api_key = self.api_key.strip()
        return self

    # HTTP
    http_timeout: float = 30.0

    # Logging
    log_json: bool = False
    log_level: str = "INFO"

    # MLflow tracing of client calls, off unless asked for
    tracing_enabled: bool = False
    mlflow_tracking_uri: str = ""

    model_config = {"env_prefix": "OPEN311_", "env_file": ".env", "extra": "ignore"}


settings = Settings()
