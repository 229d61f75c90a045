"""Configuration validation for worker startup."""

import logging
import os

from playground_agent.config import AgentSettings

logger = logging.getLogger(__name__)

REQUIRED_ENV_VARS = [
    "LIVEKIT_URL",
    "LIVEKIT_API_KEY",
    "LIVEKIT_API_SECRET",
    "OPENAI_API_KEY",
]


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


class ConfigValidator:
    """Validates worker configuration at startup."""

    @staticmethod
    def validate_environment() -> tuple[bool, list[str]]:
        """
        Validate that required environment variables are set.

        Returns:
            Tuple of (is_valid, list_of_warnings)
        """
        missing = [var for var in REQUIRED_ENV_VARS if not os.getenv(var)]
        warnings = [f"{var} is not set" for var in missing]
        return len(warnings) == 0, warnings

    @staticmethod
    def validate_settings(settings: AgentSettings) -> tuple[bool, list[str]]:
        """
        Validate worker settings for combinations pydantic cannot check.

        Returns:
            Tuple of (is_valid, list_of_warnings)
        """
        warnings = []

        if "realtime" not in settings.realtime.model:
            warnings.append(
                f"Model '{settings.realtime.model}' does not look like a realtime model"
            )

        if settings.livekit.url.startswith("http"):
            warnings.append(
                f"LIVEKIT_URL '{settings.livekit.url}' uses http(s); workers expect ws:// or wss://"
            )

        tool_timeout = settings.tools.timeout_s
        http_timeout = settings.tools.weather.timeout_s
        if tool_timeout is not None and http_timeout is not None and http_timeout > tool_timeout:
            warnings.append(
                f"Weather HTTP timeout ({http_timeout}s) exceeds tool timeout ({tool_timeout}s)"
            )

        return len(warnings) == 0, warnings

    @staticmethod
    def validate_all(settings: AgentSettings, strict: bool = False) -> None:
        """
        Run all configuration validations.

        Args:
            settings: Loaded worker settings
            strict: If True, raise ConfigurationError on any warnings.
                   If False, only log warnings.

        Raises:
            ConfigurationError: If strict=True and validation fails.
        """
        all_warnings = []

        _, env_warnings = ConfigValidator.validate_environment()
        all_warnings.extend(env_warnings)

        _, settings_warnings = ConfigValidator.validate_settings(settings)
        all_warnings.extend(settings_warnings)

        if all_warnings:
            logger.warning("Configuration validation found issues:")
            for i, warning in enumerate(all_warnings, 1):
                logger.warning(f"  {i}. {warning}")

            if strict:
                raise ConfigurationError(
                    f"Configuration validation failed with {len(all_warnings)} warnings. "
                    "Fix configuration or set strict=False to continue."
                )
        else:
            logger.info("Configuration validation passed")
