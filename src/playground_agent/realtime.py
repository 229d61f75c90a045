"""OpenAI realtime model session on top of LiveKit Agents.

Bridges the `ModelSession` contract to an `AgentSession` driving
`openai.realtime.RealtimeModel`. Registered tools are exposed to the model as
raw-schema function tools that forward to the session's `ToolExecutor`.
"""

import logging

from livekit import rtc
from livekit.agents import Agent, AgentSession, RoomInputOptions, RunContext, function_tool
from livekit.plugins import openai
from openai.types.realtime.realtime_audio_input_turn_detection import (
    RealtimeAudioInputTurnDetection,
)
from pydantic import TypeAdapter

from playground_agent.config import RealtimeConfig
from playground_agent.errors import ReconfigurationError
from playground_agent.session import ModelSession, SessionFactory
from playground_agent.session_config import Modality, SessionConfig
from playground_agent.tools.executor import ToolExecutor, ToolInvocation
from playground_agent.tools.registry import ToolDefinition
from playground_agent.transport.base import Participant

logger = logging.getLogger(__name__)

_TURN_DETECTION_ADAPTER: TypeAdapter[RealtimeAudioInputTurnDetection] = TypeAdapter(
    RealtimeAudioInputTurnDetection
)


def build_turn_detection(config: SessionConfig) -> RealtimeAudioInputTurnDetection | None:
    """Convert the session's turn policy to the realtime API type."""
    payload = config.turn_detection_payload()
    if payload is None:
        return None
    return _TURN_DETECTION_ADAPTER.validate_python(payload)


def build_function_tool(definition: ToolDefinition, executor: ToolExecutor):  # type: ignore[no-untyped-def]
    """Expose a registered tool to the model, routed through the executor."""

    async def _call(raw_arguments: dict[str, object], context: RunContext) -> str:
        invocation = ToolInvocation(
            tool_name=definition.name,
            raw_arguments=raw_arguments,
            call_id=context.function_call.call_id,
        )
        result = await executor.invoke(invocation)
        return result.text

    return function_tool(_call, raw_schema=definition.json_schema())


class RealtimeModelSession(ModelSession):
    """Live realtime conversation managed by a LiveKit `AgentSession`.

    The realtime API fixes output modalities when the session is opened and
    has no sampling temperature, so a modality change is rejected and a
    temperature change is logged without reaching the model.
    """

    def __init__(self, agent_session: AgentSession, agent: Agent, config: SessionConfig) -> None:
        self._agent_session = agent_session
        self._agent = agent
        self._modalities: frozenset[Modality] = config.modalities
        self._temperature = config.temperature

    async def update_config(self, config: SessionConfig) -> None:
        """Push instructions, voice, turn detection and token limit to the model.

        Raises:
            ReconfigurationError: If the update changes modalities
        """
        if config.modalities != self._modalities:
            raise ReconfigurationError(
                "modalities cannot change on a live realtime session "
                f"(current: {sorted(m.value for m in self._modalities)})"
            )

        if config.temperature != self._temperature:
            logger.warning(
                "Realtime API has no temperature setting; new value not applied",
                extra={"temperature": config.temperature},
            )

        self._agent.realtime_llm_session.update_options(
            voice=config.voice,
            turn_detection=build_turn_detection(config),
            max_response_output_tokens=config.max_response_output_tokens,
        )
        await self._agent.update_instructions(config.instructions)
        self._temperature = config.temperature

    async def append_message(self, role: str, text: str) -> None:
        chat_ctx = self._agent.chat_ctx.copy()
        chat_ctx.add_message(role=role, content=text)  # type: ignore[arg-type]
        await self._agent.update_chat_ctx(chat_ctx)

    async def generate_response(self) -> None:
        self._agent_session.generate_reply()

    async def aclose(self) -> None:
        await self._agent_session.aclose()


class RealtimeSessionFactory(SessionFactory):
    """Creates realtime model sessions in a LiveKit room."""

    def __init__(self, room: rtc.Room, config: RealtimeConfig | None = None) -> None:
        """Initialize factory.

        Args:
            room: Connected LiveKit room
            config: Realtime model configuration
        """
        self._room = room
        self.config = config or RealtimeConfig()

    async def create(
        self,
        config: SessionConfig,
        executor: ToolExecutor,
        participant: Participant,
    ) -> RealtimeModelSession:
        """Start an agent session bound to `participant`."""
        model = openai.realtime.RealtimeModel(
            model=self.config.model,
            voice=config.voice,
            modalities=sorted(m.value for m in config.modalities),
            turn_detection=build_turn_detection(config),
        )
        agent = Agent(
            instructions=config.instructions,
            tools=[build_function_tool(d, executor) for d in executor.registry],
        )
        agent_session: AgentSession = AgentSession(llm=model)

        await agent_session.start(
            room=self._room,
            agent=agent,
            room_input_options=RoomInputOptions(participant_identity=participant.identity),
        )
        if config.has_token_limit:
            agent.realtime_llm_session.update_options(
                max_response_output_tokens=config.max_response_output_tokens
            )

        logger.info(
            "Realtime session started",
            extra={
                "participant": participant.identity,
                "model": self.config.model,
                "voice": config.voice,
                "tools": executor.registry.names(),
            },
        )
        return RealtimeModelSession(agent_session, agent, config)
