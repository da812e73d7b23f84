"""Configuration management for cmdflow."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ENV_WHITELIST = "USER,HOME,SHELL,LANG,CMDFLOW_HOME,CMDFLOW_MODEL"


class Settings(BaseSettings):
    """Application settings."""

    # Command directory
    commands_dir: Path = Field(
        default=Path("~/.cmdflow/commands"), alias="CMDFLOW_COMMANDS_DIR"
    )
    command_file_extension: str = Field(default=".md", alias="CMDFLOW_COMMAND_FILE_EXTENSION")
    register_builtin_commands: bool = Field(default=True, alias="CMDFLOW_REGISTER_BUILTINS")

    # Watcher timing (milliseconds)
    watcher_debounce_ms: int = Field(default=300, alias="CMDFLOW_WATCHER_DEBOUNCE_MS")
    watcher_tick_ms: int = Field(default=50, alias="CMDFLOW_WATCHER_TICK_MS")

    # Agent routing
    agent_activation_threshold: float = Field(
        default=0.6, alias="CMDFLOW_AGENT_ACTIVATION_THRESHOLD"
    )
    agent_output_format: Literal["markdown", "json", "plain"] = Field(
        default="markdown", alias="CMDFLOW_AGENT_OUTPUT_FORMAT"
    )

    # Comma separated names exposed to templates as env.*
    env_whitelist: str = Field(default=DEFAULT_ENV_WHITELIST, alias="CMDFLOW_ENV_WHITELIST")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: Literal["text", "json"] = Field(default="text", alias="LOG_FORMAT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("command_file_extension", mode="before")
    @classmethod
    def normalize_extension(cls, value: str | None) -> str:
        """Ensure the extension carries a leading dot."""
        if not value:
            return ".md"
        value = str(value).strip()
        return value if value.startswith(".") else f".{value}"

    @field_validator("agent_activation_threshold")
    @classmethod
    def validate_threshold(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("CMDFLOW_AGENT_ACTIVATION_THRESHOLD must be between 0 and 1")
        return value

    @field_validator("agent_output_format", mode="before")
    @classmethod
    def normalize_output_format(cls, value: str | None) -> str:
        if value is None:
            return "markdown"
        normalized = str(value).strip().lower()
        if normalized in {"plain_text", "plaintext", "text"}:
            return "plain"
        return normalized

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: str | None) -> str:
        return str(value or "INFO").strip().upper()

    @model_validator(mode="after")
    def check_watcher_timing(self) -> "Settings":
        if self.watcher_debounce_ms <= 0 or self.watcher_tick_ms <= 0:
            raise ValueError("Watcher debounce and tick intervals must be positive")
        if self.watcher_tick_ms >= self.watcher_debounce_ms:
            raise ValueError(
                "CMDFLOW_WATCHER_TICK_MS must be smaller than CMDFLOW_WATCHER_DEBOUNCE_MS"
            )
        return self

    @property
    def resolved_commands_dir(self) -> Path:
        """Commands directory with ``~`` expanded."""
        return self.commands_dir.expanduser()

    @property
    def env_whitelist_names(self) -> list[str]:
        """Whitelisted environment variable names, in declaration order."""
        return [name.strip() for name in self.env_whitelist.split(",") if name.strip()]

    @property
    def watcher_debounce_seconds(self) -> float:
        return self.watcher_debounce_ms / 1000.0

    @property
    def watcher_tick_seconds(self) -> float:
        return self.watcher_tick_ms / 1000.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
