"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class ApiConfig(BaseModel):
    """HTTP server settings."""

    host: str = Field("127.0.0.1", min_length=1, description="Interface to bind")
    port: int = Field(8000, ge=1, le=65535, description="Port to listen on")
    root_path: str = Field("", description="Path prefix when served behind a proxy")

    @field_validator("host")
    @classmethod
    def strip_host(cls, v: str) -> str:
        """Strip whitespace from host."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("host cannot be empty")
        return stripped

    @field_validator("root_path")
    @classmethod
    def normalize_root_path(cls, v: str) -> str:
        """Ensure root_path is empty or starts with a single slash and has no trailing one."""
        stripped = v.strip().rstrip("/")
        if stripped and not stripped.startswith("/"):
            stripped = "/" + stripped
        return stripped


class RankingConfig(BaseModel):
    """Settings for candidate ranking."""

    max_candidates: int = Field(
        50, ge=1, le=500, description="Maximum candidates returned per project"
    )
    require_skill_overlap: bool = Field(
        False, description="Drop freelancers sharing no skill with the project"
    )
    budget_weight: float = Field(
        0.25, ge=0.0, le=1.0, description="Score bonus when the hourly rate fits the budget"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the freelance matching service."""

    api: ApiConfig = Field(default_factory=ApiConfig, description="HTTP server settings")
    ranking: RankingConfig = Field(
        default_factory=RankingConfig, description="Candidate ranking settings"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    service_name: Optional[str] = Field(
        None, description="Service label attached to every log record"
    )
