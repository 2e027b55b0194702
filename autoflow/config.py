"""Configuration management for the Automation Workflow Engine."""

import os
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator, model_validator
from enum import Enum

from .core.exceptions import ConfigurationError

ENV_PREFIX = "AUTOFLOW_"


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AppConfig(BaseModel):
    """Application configuration settings."""

    # Application settings
    app_name: str = Field(default="Automation Workflow Engine", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")
    reload: bool = Field(default=False, description="Enable auto-reload in development")

    # Execution engine settings
    simulated_delay_min_ms: float = Field(
        default=500,
        description="Lower bound of the simulated processor's latency"
    )
    simulated_delay_max_ms: float = Field(
        default=1500,
        description="Upper bound of the simulated processor's latency"
    )
    default_node_timeout_ms: Optional[int] = Field(
        default=None,
        description="Node deadline used when a node sets no timeout of its own"
    )
    default_execution_timeout_ms: Optional[int] = Field(
        default=None,
        description="Run deadline used when a workflow sets no maxExecutionTime"
    )
    validate_before_run: bool = Field(
        default=False,
        description="Reject structurally invalid workflows before running any node"
    )
    strict_scheduling: bool = Field(
        default=False,
        description="Fail runs whose dependency graph contains a cycle instead of truncating the order"
    )

    # Logging settings
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format"
    )
    log_file: Optional[str] = Field(default=None, description="Log file path")
    log_max_size: int = Field(default=10485760, description="Maximum log file size in bytes")  # 10MB
    log_backup_count: int = Field(default=5, description="Number of log backup files to keep")
    log_structured: bool = Field(default=False, description="Emit JSON log lines")

    # Request monitoring settings
    slow_request_threshold: float = Field(
        default=5.0,
        description="Slow request threshold in seconds"
    )

    # Security settings
    cors_origins: list = Field(
        default=["*"],
        description="CORS allowed origins"
    )
    cors_methods: list = Field(
        default=["GET", "POST"],
        description="CORS allowed methods"
    )

    @field_validator('port')
    @classmethod
    def validate_port(cls, v):
        """Validate port number."""
        if not 1 <= v <= 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator('default_node_timeout_ms', 'default_execution_timeout_ms')
    @classmethod
    def validate_timeouts(cls, v):
        """Validate timeout values."""
        if v is not None and v < 1:
            raise ValueError("Timeout must be at least 1 millisecond")
        return v

    @model_validator(mode='after')
    def validate_simulated_delay(self):
        """Validate the simulated latency range."""
        if self.simulated_delay_min_ms < 0:
            raise ValueError("Simulated delay cannot be negative")
        if self.simulated_delay_max_ms < self.simulated_delay_min_ms:
            raise ValueError("Simulated delay maximum must not be below the minimum")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return not self.debug and not self.reload

    def get_uvicorn_config(self) -> Dict[str, Any]:
        """Get Uvicorn server configuration."""
        return {
            "host": self.host,
            "port": self.port,
            "reload": self.reload,
            "log_level": self.log_level.value.lower(),
            "access_log": self.debug
        }

    @classmethod
    def from_env(cls) -> 'AppConfig':
        """
        Create configuration from environment variables.

        Every field can be set as ``AUTOFLOW_<FIELD NAME>`` (e.g.
        ``AUTOFLOW_DEFAULT_NODE_TIMEOUT_MS``); pydantic converts the string to
        the field's type. List fields take comma-separated values. Unset or
        empty variables leave the default in place.
        """
        values: Dict[str, Any] = {}
        for name, field in cls.model_fields.items():
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}", "").strip()
            if not raw:
                continue
            if field.annotation is list:
                items = [item.strip() for item in raw.split(",") if item.strip()]
                if items:
                    values[name] = items
            elif name == "log_level":
                values[name] = raw.upper()
            else:
                values[name] = raw

        return cls(**values)


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def load_config(config_file: Optional[str] = None) -> AppConfig:
    """Load configuration from a .env file and environment variables."""
    global _config
    from dotenv import load_dotenv

    if config_file and os.path.exists(config_file):
        load_dotenv(config_file)
    elif os.path.exists('.env'):
        load_dotenv('.env')

    _config = AppConfig.from_env()

    return _config


def reset_config():
    """Reset the global configuration instance (mainly for testing)."""
    global _config
    _config = None


def validate_config(config: AppConfig) -> None:
    """Validate configuration settings that depend on the environment."""
    errors = []

    if config.log_file:
        log_dir = os.path.dirname(config.log_file)
        if log_dir and not os.path.exists(log_dir):
            try:
                os.makedirs(log_dir, exist_ok=True)
            except OSError as e:
                errors.append(f"Cannot create log directory {log_dir}: {e}")

    if (
        config.default_node_timeout_ms is not None
        and config.default_execution_timeout_ms is not None
        and config.default_node_timeout_ms > config.default_execution_timeout_ms
    ):
        errors.append("Default node timeout exceeds the default execution timeout")

    if errors:
        raise ConfigurationError(f"Configuration validation failed: {'; '.join(errors)}")


# Environment-specific configurations
def get_development_config() -> AppConfig:
    """Get development configuration."""
    return AppConfig(
        debug=True,
        reload=True,
        log_level=LogLevel.DEBUG,
    )


def get_production_config() -> AppConfig:
    """Get production configuration."""
    return AppConfig(
        debug=False,
        reload=False,
        log_level=LogLevel.INFO,
        log_structured=True,
        validate_before_run=True,
        cors_origins=[]
    )


def get_testing_config() -> AppConfig:
    """Get testing configuration."""
    return AppConfig(
        debug=True,
        log_level=LogLevel.WARNING,
        simulated_delay_min_ms=0,
        simulated_delay_max_ms=0,
    )
