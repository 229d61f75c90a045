"""Configuration schema for the playground agent worker.

Defines Pydantic models for loading and validating worker configuration
from YAML files and environment variables. Per-session behavior (instructions,
voice, temperature, turn detection) is not configured here; it comes from the
participant, see `playground_agent.session_config`.
"""

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_PATH = Path("configs/agent.yaml")


class LiveKitConfig(BaseModel):
    """LiveKit server connection configuration."""

    url: str = Field(default="ws://localhost:7880", description="LiveKit server URL")
    api_key: str = Field(default="devkey", description="LiveKit API key")
    api_secret: str = Field(default="secret", description="LiveKit API secret")
    agent_name: str = Field(
        default="",
        description="Agent name for explicit dispatch (empty for automatic dispatch)",
    )


class RealtimeConfig(BaseModel):
    """Realtime speech model configuration."""

    model: str = Field(
        default="gpt-4o-mini-realtime-preview-2024-12-17",
        description="OpenAI realtime model identifier",
    )
    greeting: str = Field(
        default="How can I help you today?",
        min_length=1,
        description="Assistant message seeded into the conversation at session start",
    )


class WeatherConfig(BaseModel):
    """Weather tool configuration."""

    base_url: str = Field(default="https://wttr.in", description="Weather text endpoint")
    format: str = Field(default="%C+%t", description="wttr.in format string")
    timeout_s: float | None = Field(
        default=10.0,
        gt=0,
        description="HTTP request timeout in seconds (None for no limit)",
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate URL scheme and strip trailing slashes."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Weather base_url must be an http(s) URL, got '{v}'")
        return v.rstrip("/")


class ToolsConfig(BaseModel):
    """Tool execution configuration."""

    timeout_s: float | None = Field(
        default=30.0,
        gt=0,
        description="Upper bound on a single tool invocation in seconds (None for no limit)",
    )
    weather: WeatherConfig = Field(default_factory=WeatherConfig)


class RpcConfig(BaseModel):
    """Remote procedure configuration."""

    update_config_method: str = Field(
        default="pg.updateConfig",
        min_length=1,
        description="RPC method name for live reconfiguration",
    )


class AgentSettings(BaseModel):
    """Root worker configuration."""

    livekit: LiveKitConfig = Field(default_factory=LiveKitConfig)
    realtime: RealtimeConfig = Field(default_factory=RealtimeConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    rpc: RpcConfig = Field(default_factory=RpcConfig)

    # Operational settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    initialize_process_timeout_s: float = Field(
        default=10.0,
        gt=0,
        description="Worker process initialization timeout in seconds",
    )
    shutdown_process_timeout_s: float = Field(
        default=60.0,
        gt=0,
        description="Worker process graceful shutdown timeout in seconds",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate logging level name."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        level = v.upper()
        if level not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}, got '{v}'")
        return level

    @staticmethod
    def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
        """Overlay environment variables onto raw configuration data."""
        if livekit_url := os.getenv("LIVEKIT_URL"):
            data.setdefault("livekit", {})["url"] = livekit_url

        if livekit_api_key := os.getenv("LIVEKIT_API_KEY"):
            data.setdefault("livekit", {})["api_key"] = livekit_api_key

        if livekit_api_secret := os.getenv("LIVEKIT_API_SECRET"):
            data.setdefault("livekit", {})["api_secret"] = livekit_api_secret

        if agent_name := os.getenv("LIVEKIT_AGENT_NAME"):
            data.setdefault("livekit", {})["agent_name"] = agent_name

        if realtime_model := os.getenv("REALTIME_MODEL"):
            data.setdefault("realtime", {})["model"] = realtime_model

        if weather_base_url := os.getenv("WEATHER_BASE_URL"):
            tools = data.setdefault("tools", {})
            tools.setdefault("weather", {})["base_url"] = weather_base_url

        if tool_timeout := os.getenv("TOOL_TIMEOUT_S"):
            data.setdefault("tools", {})["timeout_s"] = float(tool_timeout)

        if log_level := os.getenv("LOG_LEVEL"):
            data["log_level"] = log_level

        return data

    @classmethod
    def from_yaml(cls, path: Path) -> "AgentSettings":
        """Load configuration from YAML file with environment variable overrides.

        Args:
            path: Path to YAML configuration file

        Returns:
            Loaded configuration

        Raises:
            FileNotFoundError: If configuration file doesn't exist
            ValueError: If YAML is invalid or validation fails
        """
        import yaml  # type: ignore[import-untyped]

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file must contain a mapping: {path}")

        return cls.model_validate(cls._apply_env_overrides(data))

    @classmethod
    def from_env(cls) -> "AgentSettings":
        """Build configuration from defaults and environment variables only."""
        return cls.model_validate(cls._apply_env_overrides({}))

    @classmethod
    def from_yaml_with_defaults(cls, path: Path | None = None) -> "AgentSettings":
        """Load configuration from YAML or use defaults if file doesn't exist.

        Args:
            path: Optional path to YAML configuration file

        Returns:
            Loaded configuration or defaults (environment overrides still apply)
        """
        if path is not None and path.exists():
            return cls.from_yaml(path)

        return cls.from_env()

    @classmethod
    def load(cls) -> "AgentSettings":
        """Load configuration from `PLAYGROUND_AGENT_CONFIG` or the default path."""
        path = Path(os.getenv("PLAYGROUND_AGENT_CONFIG", str(DEFAULT_CONFIG_PATH)))
        return cls.from_yaml_with_defaults(path)
