"""Session orchestrator.

Drives one conversational session from participant join to teardown:

    AWAITING_PARTICIPANT → CONFIGURING → ACTIVE → TERMINATED

Initial configuration is mandatory: a participant whose metadata does not
parse fails the session start. Once active, tool calls and reconfiguration
calls arrive asynchronously through the model session and the transport.
"""

import logging

from playground_agent.config import AgentSettings
from playground_agent.errors import ConfigParseError, InitialConfigError
from playground_agent.rpc import ReconfigurationEndpoint
from playground_agent.session import (
    VALID_TRANSITIONS,
    ModelSession,
    OrchestratorState,
    SessionFactory,
    SessionHandle,
    SessionMetrics,
)
from playground_agent.session_config import SessionConfig, parse_session_config
from playground_agent.tools.executor import ToolExecutor
from playground_agent.tools.registry import ToolRegistry
from playground_agent.transport.base import Participant, RoomTransport

logger = logging.getLogger(__name__)

ASSISTANT_ROLE = "assistant"


class SessionOrchestrator:
    """Top-level controller for a single participant session."""

    def __init__(
        self,
        transport: RoomTransport,
        session_factory: SessionFactory,
        registry: ToolRegistry,
        settings: AgentSettings | None = None,
    ) -> None:
        """Initialize session orchestrator.

        Args:
            transport: Connection to the participant
            session_factory: Creates the model session
            registry: Tools exposed to the model (frozen at session creation)
            settings: Worker configuration
        """
        self.transport = transport
        self.session_factory = session_factory
        self.registry = registry
        self.settings = settings or AgentSettings()

        self.state = OrchestratorState.AWAITING_PARTICIPANT
        self.metrics = SessionMetrics()
        self.handle = SessionHandle()
        self.executor = ToolExecutor(
            registry,
            timeout_s=self.settings.tools.timeout_s,
            metrics=self.metrics,
        )

        self.participant: Participant | None = None
        self.endpoint: ReconfigurationEndpoint | None = None
        self._rpc_registered = False

    @property
    def rpc_method(self) -> str:
        return self.settings.rpc.update_config_method

    @property
    def config(self) -> SessionConfig | None:
        """Configuration currently applied to the live session."""
        return self.handle.config

    @property
    def terminated(self) -> bool:
        return self.state == OrchestratorState.TERMINATED

    def transition_state(self, new_state: OrchestratorState) -> None:
        """Transition to a new state with validation.

        Raises:
            ValueError: If transition is invalid
        """
        if new_state not in VALID_TRANSITIONS.get(self.state, set()):
            raise ValueError(f"Invalid state transition: {self.state.value} → {new_state.value}")

        old_state = self.state
        self.state = new_state

        logger.info(
            "Orchestrator state transition",
            extra={"from_state": old_state.value, "to_state": new_state.value},
        )

    async def start(self) -> None:
        """Bring the session up to ACTIVE.

        Raises:
            InitialConfigError: If participant metadata is not a valid configuration
        """
        try:
            await self._start()
        except BaseException:
            await self.shutdown()
            raise

    async def _start(self) -> None:
        # shutdown() can run from the job shutdown callback at any await below
        participant = await self.transport.wait_for_participant()
        if self.terminated:
            return
        self.participant = participant
        self.transition_state(OrchestratorState.CONFIGURING)

        logger.info(
            "Starting realtime session",
            extra={"participant": participant.identity, "model": self.settings.realtime.model},
        )

        try:
            config = parse_session_config(participant.metadata)
        except ConfigParseError as e:
            logger.error(
                "Invalid initial configuration",
                extra={"participant": participant.identity, "error": str(e)},
            )
            raise InitialConfigError(participant.identity, e) from e

        self.registry.freeze()
        session = await self.session_factory.create(config, self.executor, participant)
        if self.terminated:
            logger.info(
                "Session shut down during creation; closing model session",
                extra={"participant": participant.identity},
            )
            await self._close_session(session)
            return
        self.handle.bind(session, config)

        self.endpoint = ReconfigurationEndpoint(participant.identity, self.handle, self.metrics)
        self.transport.register_rpc_method(self.rpc_method, self.endpoint.handle)
        self._rpc_registered = True

        await session.append_message(ASSISTANT_ROLE, self.settings.realtime.greeting)
        if self.terminated:
            return
        await session.generate_response()
        if self.terminated:
            return

        self.transition_state(OrchestratorState.ACTIVE)

    async def run(self) -> None:
        """Run the session until the participant disconnects."""
        try:
            await self._start()
            if not self.terminated:
                await self.transport.wait_for_disconnect()
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Release the RPC registration and the model session.

        Safe to call more than once.
        """
        if self.terminated:
            return

        self.transition_state(OrchestratorState.TERMINATED)

        if self._rpc_registered:
            self.transport.unregister_rpc_method(self.rpc_method)
            self._rpc_registered = False

        session = self.handle.clear()
        if session is not None:
            await self._close_session(session)

        self.metrics.finalize()
        logger.info(
            "Session terminated",
            extra={
                "participant": self.participant.identity if self.participant else None,
                **self.metrics.summary(),
            },
        )

    async def _close_session(self, session: ModelSession) -> None:
        try:
            await session.aclose()
        except Exception as e:
            logger.warning("Error while closing model session", extra={"error": str(e)})
