"""Application settings using Pydantic BaseSettings for environment variable management."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Process-level settings loaded from environment variables or a .env file.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log output format (json for production, console for dev)
        pipeline_config_path: Optional JSON file with the pipeline configuration
        user_agent: User-Agent header sent by collectors and robots checks
        alert_webhook_url: Optional webhook that receives alert events
        signal_store_path: Optional JSON file for signal persistence
    """

    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: json or console"
    )
    pipeline_config_path: str | None = Field(
        default=None,
        description="Path to the pipeline configuration JSON file"
    )
    user_agent: str = Field(
        default="competitive-intel-monitor/0.1 (+public-sources-only)",
        description="User agent for outbound requests"
    )
    alert_webhook_url: str | None = Field(
        default=None,
        description="Webhook URL for alert delivery"
    )
    signal_store_path: str | None = Field(
        default=None,
        description="JSON persistence path for stored signals"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_prefix": "CI_",
    }


settings = Settings()
