"""Configuration settings using Pydantic BaseSettings."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Description suggestion (OpenAI)
    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key; suggestions are disabled without it")
    model_name: str = Field(default="gpt-4o-mini", description="OpenAI model used to draft task descriptions")
    suggestion_temperature: float = Field(default=0.7, description="Sampling temperature for description suggestions")

    # Storage Configuration
    storage_backend: Literal["memory", "local", "remote"] = Field(default="local", description="Task repository backend")
    tasks_file: Path = Field(default=Path("data/tasks.json"), description="JSON file used by the local backend")
    remote_base_url: Optional[str] = Field(default=None, description="Base URL of the remote task document store")
    remote_timeout: float = Field(default=10.0, description="Timeout in seconds for remote store requests")

    # Task rules
    require_due_date: bool = Field(default=True, description="Reject new tasks without a due date")
    timeline_days: int = Field(default=7, ge=1, le=31, description="Number of days shown by the timeline view")

    # Application Configuration
    app_host: str = Field(default="0.0.0.0", description="FastAPI host")
    app_port: int = Field(default=8000, description="FastAPI port")
    debug: bool = Field(default=False, description="Enable debug mode")
    environment: str = Field(default="development", description="Deployment environment name")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Path = Field(default=Path("logs"), description="Directory for rotating log files")
    log_file: Optional[Path] = Field(default=None, description="Log file path")

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
