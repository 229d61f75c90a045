"""Session state, metrics and the model-session contract.

Defines the orchestrator state machine, per-session metrics, the abstract
model session the orchestrator drives, and `SessionHandle`, the reference cell
through which RPC handlers reach whichever model session is currently live.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from playground_agent.errors import ReconfigurationError, SessionUnavailableError
from playground_agent.session_config import SessionConfig

if TYPE_CHECKING:
    from playground_agent.tools.executor import ToolExecutor
    from playground_agent.transport.base import Participant

logger = logging.getLogger(__name__)


class OrchestratorState(Enum):
    """Orchestrator state machine states.

    State Transitions:
    - AWAITING_PARTICIPANT → CONFIGURING (participant joined)
    - CONFIGURING → ACTIVE (model session created and greeted)
    - * → TERMINATED (disconnect, shutdown or initial config failure)
    """

    AWAITING_PARTICIPANT = "awaiting_participant"
    CONFIGURING = "configuring"
    ACTIVE = "active"
    TERMINATED = "terminated"


# Valid state transitions
VALID_TRANSITIONS: dict[OrchestratorState, set[OrchestratorState]] = {
    OrchestratorState.AWAITING_PARTICIPANT: {
        OrchestratorState.CONFIGURING,
        OrchestratorState.TERMINATED,
    },
    OrchestratorState.CONFIGURING: {OrchestratorState.ACTIVE, OrchestratorState.TERMINATED},
    OrchestratorState.ACTIVE: {OrchestratorState.TERMINATED},
    OrchestratorState.TERMINATED: set(),  # Terminal state
}


@dataclass
class SessionMetrics:
    """Session activity counters."""

    tool_calls: int = 0
    tool_failures: int = 0
    reconfigurations_accepted: int = 0
    reconfigurations_rejected: int = 0  # Unauthorized callers
    reconfigurations_failed: int = 0  # Parse or apply failures

    session_start_ts: float = field(default_factory=time.monotonic)
    session_end_ts: float | None = None

    def record_tool_call(self, failed: bool) -> None:
        """Record a tool invocation outcome."""
        self.tool_calls += 1
        if failed:
            self.tool_failures += 1

    def record_reconfiguration(self, outcome: str) -> None:
        """Record a reconfiguration outcome ('accepted', 'rejected' or 'failed')."""
        if outcome == "accepted":
            self.reconfigurations_accepted += 1
        elif outcome == "rejected":
            self.reconfigurations_rejected += 1
        elif outcome == "failed":
            self.reconfigurations_failed += 1
        else:
            raise ValueError(f"Unknown reconfiguration outcome: {outcome}")

    def finalize(self) -> None:
        """Mark session as complete and record end time."""
        if self.session_end_ts is None:
            self.session_end_ts = time.monotonic()

    def summary(self) -> dict[str, int | float]:
        """Metrics summary for logging."""
        return {
            "tool_calls": self.tool_calls,
            "tool_failures": self.tool_failures,
            "reconfigurations_accepted": self.reconfigurations_accepted,
            "reconfigurations_rejected": self.reconfigurations_rejected,
            "reconfigurations_failed": self.reconfigurations_failed,
            "session_duration_s": (
                (self.session_end_ts or time.monotonic()) - self.session_start_ts
            ),
        }


class ModelSession(ABC):
    """A live conversation with a realtime speech model."""

    @abstractmethod
    async def update_config(self, config: SessionConfig) -> None:
        """Replace the session's behavioral configuration.

        Raises:
            Exception: Any failure from the model backend
        """
        pass

    @abstractmethod
    async def append_message(self, role: str, text: str) -> None:
        """Append a message to the conversation without triggering a response."""
        pass

    @abstractmethod
    async def generate_response(self) -> None:
        """Ask the model to produce its next response."""
        pass

    @abstractmethod
    async def aclose(self) -> None:
        """Release the model session."""
        pass


class SessionFactory(ABC):
    """Creates model sessions bound to a participant."""

    @abstractmethod
    async def create(
        self,
        config: SessionConfig,
        executor: "ToolExecutor",
        participant: "Participant",
    ) -> ModelSession:
        """Create and start a model session.

        Args:
            config: Initial session configuration
            executor: Executor that model tool calls are routed to
            participant: Participant the session serves

        Returns:
            ModelSession: Started session
        """
        pass


class SessionHandle:
    """Mutable reference to the live model session and its configuration.

    Handlers registered before the session exists hold the handle and resolve
    the session at call time. Configuration updates are serialized, and the
    current config reference is swapped only after the model accepted the
    update, so readers always see one complete config.
    """

    def __init__(self) -> None:
        self._session: ModelSession | None = None
        self._config: SessionConfig | None = None
        self._lock = asyncio.Lock()

    @property
    def session(self) -> ModelSession | None:
        return self._session

    @property
    def config(self) -> SessionConfig | None:
        return self._config

    @property
    def is_live(self) -> bool:
        return self._session is not None

    def bind(self, session: ModelSession, config: SessionConfig) -> None:
        """Attach a newly created session and its initial config."""
        self._session = session
        self._config = config

    def clear(self) -> ModelSession | None:
        """Detach and return the current session, forgetting its config."""
        session, self._session = self._session, None
        self._config = None
        return session

    async def apply(self, config: SessionConfig) -> None:
        """Apply a full configuration replacement to the live session.

        Raises:
            SessionUnavailableError: If no session is bound
            ReconfigurationError: If the model session rejects the update
        """
        async with self._lock:
            session = self._session
            if session is None:
                raise SessionUnavailableError("No live session to reconfigure")

            try:
                await session.update_config(config)
            except Exception as e:
                raise ReconfigurationError(f"Failed to apply configuration: {e}") from e

            self._config = config
            logger.debug("Session configuration replaced", extra={"voice": config.voice})
