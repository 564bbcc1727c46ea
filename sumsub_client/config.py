"""
Client configuration.

Credentials and endpoint are read once from SUMSUB_* environment variables
(or a local .env file) and stay frozen for the lifetime of the process.
"""
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class SumsubSettings(BaseSettings):
    """Sumsub API settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SUMSUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    app_token: str = Field(..., description="App token sent as X-App-Token")
    secret_key: SecretStr = Field(..., description="Secret used for request signatures")
    base_url: str = Field("https://api.sumsub.com", description="API base URL, no trailing path")
    timeout_seconds: float = Field(10.0, gt=0, description="Per request network timeout")
    raise_for_status: bool = Field(False, description="Raise ApiError on non-2xx responses")
