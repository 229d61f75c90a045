"""Realtime playground agent.

A LiveKit Agents worker that configures an OpenAI realtime model from
participant metadata, supports live reconfiguration over RPC, and dispatches
model tool calls.
"""

from playground_agent.errors import (
    ConfigParseError,
    InitialConfigError,
    InvalidFieldError,
    MalformedConfigError,
)
from playground_agent.orchestrator import SessionOrchestrator
from playground_agent.session_config import SessionConfig, parse_session_config

__all__ = [
    "ConfigParseError",
    "InitialConfigError",
    "InvalidFieldError",
    "MalformedConfigError",
    "SessionConfig",
    "SessionOrchestrator",
    "parse_session_config",
]

__version__ = "0.1.0"
