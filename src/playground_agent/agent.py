"""LiveKit Agents worker for the realtime playground.

Each job serves one participant: the participant's metadata configures an
OpenAI realtime model, the `pg.updateConfig` RPC reconfigures it live, and the
model can call the `weather` tool.

Requirements:
- LIVEKIT_URL: LiveKit server URL (e.g., ws://localhost:7880)
- LIVEKIT_API_KEY: LiveKit API key
- LIVEKIT_API_SECRET: LiveKit API secret
- OPENAI_API_KEY: OpenAI API key

Usage:
    python -m playground_agent dev
"""

import logging

from dotenv import load_dotenv
from livekit import agents
from livekit.agents import JobContext, WorkerOptions

from playground_agent.config import AgentSettings
from playground_agent.config_validator import ConfigValidator
from playground_agent.errors import InitialConfigError
from playground_agent.orchestrator import SessionOrchestrator
from playground_agent.realtime import RealtimeSessionFactory
from playground_agent.tools.registry import ToolRegistry
from playground_agent.tools.weather import WeatherTool
from playground_agent.transport.livekit_transport import LiveKitRoomTransport

# Load environment variables (.env.local takes precedence)
load_dotenv(".env.local")
load_dotenv()

logger = logging.getLogger(__name__)


def build_registry(weather: WeatherTool) -> ToolRegistry:
    """Create the tool registry exposed to the model."""
    registry = ToolRegistry()
    registry.register(weather.definition())
    return registry


async def entrypoint(ctx: JobContext) -> None:
    """Agent entry point - called when a new job is assigned.

    Connects to the room, waits for the participant and runs the session
    until the participant disconnects or the job shuts down.

    Args:
        ctx: Job context containing room and participant information
    """
    settings = AgentSettings.load()

    await ctx.connect()
    logger.info("Agent connected to room", extra={"room": ctx.room.name})

    transport = LiveKitRoomTransport(ctx)
    weather = WeatherTool(settings.tools.weather)
    orchestrator = SessionOrchestrator(
        transport=transport,
        session_factory=RealtimeSessionFactory(ctx.room, settings.realtime),
        registry=build_registry(weather),
        settings=settings,
    )

    async def _on_shutdown() -> None:
        await orchestrator.shutdown()
        transport.close()

    ctx.add_shutdown_callback(_on_shutdown)

    try:
        await orchestrator.run()
    except InitialConfigError as e:
        logger.error(
            "Session start aborted: participant metadata is not a valid configuration",
            extra={"room": ctx.room.name, "participant": e.participant_identity, "error": str(e)},
        )
        raise
    except Exception as e:
        logger.error(
            f"Fatal error in agent entrypoint: {e}",
            exc_info=True,
            extra={"room": ctx.room.name},
        )
        raise  # Re-raise to mark job as failed
    finally:
        await weather.aclose()


def main() -> None:
    """Main entry point for the agent worker.

    Starts the LiveKit Agents worker which will:
    1. Connect to LiveKit server
    2. Register as available worker
    3. Call entrypoint() for each job
    """
    settings = AgentSettings.load()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    ConfigValidator.validate_all(settings, strict=False)

    logger.info("Starting LiveKit Agents worker...")
    logger.info(f"LiveKit URL: {settings.livekit.url}")
    logger.info(f"Realtime model: {settings.realtime.model}")

    agents.cli.run_app(
        WorkerOptions(
            entrypoint_fnc=entrypoint,
            agent_name=settings.livekit.agent_name,
            ws_url=settings.livekit.url,
            api_key=settings.livekit.api_key,
            api_secret=settings.livekit.api_secret,
            initialize_process_timeout=settings.initialize_process_timeout_s,
            shutdown_process_timeout=settings.shutdown_process_timeout_s,
        )
    )


if __name__ == "__main__":
    main()
