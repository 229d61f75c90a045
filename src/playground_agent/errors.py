"""Exception hierarchy for the playground agent.

Initial configuration errors are fatal to session start. Tool and
reconfiguration errors are handled inside the session and reported back to
the model or the RPC caller.
"""


class PlaygroundAgentError(Exception):
    """Base class for all playground agent errors."""

    pass


class ConfigParseError(PlaygroundAgentError):
    """Raised when a session configuration payload cannot be parsed."""

    error_type = "config_parse_error"


class MalformedConfigError(ConfigParseError):
    """Payload is not decodable as a JSON object."""

    error_type = "malformed_config"


class InvalidFieldError(ConfigParseError):
    """A field is missing or holds a value of the wrong shape."""

    error_type = "invalid_field"

    def __init__(self, field: str, message: str) -> None:
        """Initialize invalid field error.

        Args:
            field: Name of the offending field
            message: Human-readable description
        """
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class InitialConfigError(PlaygroundAgentError):
    """Participant metadata could not be turned into a session configuration."""

    def __init__(self, participant_identity: str, cause: ConfigParseError) -> None:
        super().__init__(
            f"Invalid initial configuration for participant '{participant_identity}': {cause}"
        )
        self.participant_identity = participant_identity
        self.cause = cause


class SessionUnavailableError(PlaygroundAgentError):
    """No live model session is available."""

    error_type = "session_unavailable"


class ReconfigurationError(PlaygroundAgentError):
    """The model session rejected a configuration update."""

    error_type = "apply_failed"


class ToolError(PlaygroundAgentError):
    """Base class for recoverable tool-call failures."""

    error_type = "tool_error"

    def __init__(self, tool_name: str, message: str) -> None:
        super().__init__(message)
        self.tool_name = tool_name
        self.message = message


class ToolNotFoundError(ToolError):
    """The model asked for a tool that is not registered."""

    error_type = "not_found"

    def __init__(self, tool_name: str) -> None:
        super().__init__(tool_name, f"Tool '{tool_name}' is not available")


class InvalidArgumentsError(ToolError):
    """Tool arguments do not match the tool's parameter schema."""

    error_type = "invalid_arguments"


class ToolExecutionError(ToolError):
    """The tool executor raised or timed out."""

    error_type = "execution_failed"


class DuplicateToolError(PlaygroundAgentError):
    """A tool with the same name is already registered."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Tool '{tool_name}' is already registered")
        self.tool_name = tool_name


class WeatherServiceError(PlaygroundAgentError):
    """The weather provider returned a non-2xx response."""

    def __init__(self, status: int) -> None:
        super().__init__(f"Weather API returned status: {status}")
        self.status = status
