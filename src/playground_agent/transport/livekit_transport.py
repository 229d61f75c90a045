"""LiveKit transport implementation.

Adapts a LiveKit Agents `JobContext` to the `RoomTransport` interface:
participant discovery, RPC registration on the agent's local participant, and
disconnect tracking through room events.
"""

import asyncio
import logging

from livekit import rtc
from livekit.agents import JobContext

from playground_agent.transport.base import Participant, RoomTransport, RpcHandler, RpcRequest

logger = logging.getLogger(__name__)


class LiveKitRoomTransport(RoomTransport):
    """Room transport backed by a LiveKit job.

    The job context must already be connected (`await ctx.connect()`).
    """

    def __init__(self, ctx: JobContext) -> None:
        """Initialize LiveKit room transport.

        Args:
            ctx: Connected job context
        """
        self._ctx = ctx
        self._participant: rtc.RemoteParticipant | None = None
        self._registered_methods: set[str] = set()
        self._disconnect_event = asyncio.Event()

        ctx.room.on("participant_disconnected", self._on_participant_disconnected)
        ctx.room.on("disconnected", self._on_room_disconnected)

    @property
    def transport_type(self) -> str:
        """Transport type identifier."""
        return "livekit"

    @property
    def room_name(self) -> str:
        return self._ctx.room.name

    async def wait_for_participant(self) -> Participant:
        """Wait for the remote participant to join the room."""
        logger.info("Waiting for participant", extra={"room": self.room_name})
        participant = await self._ctx.wait_for_participant()
        self._participant = participant

        logger.info(
            "Participant joined",
            extra={"room": self.room_name, "participant": participant.identity},
        )
        return Participant(
            identity=participant.identity,
            metadata=participant.metadata or "",
            name=participant.name or "",
        )

    def register_rpc_method(self, method: str, handler: RpcHandler) -> None:
        """Register `handler` on the agent's local participant."""

        async def _invoke(data: rtc.RpcInvocationData) -> str:
            request = RpcRequest(
                caller_identity=data.caller_identity,
                payload=data.payload,
                request_id=data.request_id,
                response_timeout=data.response_timeout,
            )
            return await handler(request)

        self._ctx.room.local_participant.register_rpc_method(method, _invoke)
        self._registered_methods.add(method)
        logger.info("RPC method registered", extra={"method": method, "room": self.room_name})

    def unregister_rpc_method(self, method: str) -> None:
        """Unregister an RPC method; unknown methods are ignored."""
        if method not in self._registered_methods:
            return

        self._registered_methods.discard(method)
        self._ctx.room.local_participant.unregister_rpc_method(method)
        logger.info("RPC method unregistered", extra={"method": method, "room": self.room_name})

    async def wait_for_disconnect(self) -> None:
        """Wait until the participant leaves or the room disconnects."""
        await self._disconnect_event.wait()

    def close(self) -> None:
        """Release all RPC registrations and wake disconnect waiters."""
        for method in list(self._registered_methods):
            self.unregister_rpc_method(method)
        self._disconnect_event.set()

    def _on_participant_disconnected(self, participant: rtc.RemoteParticipant) -> None:
        if self._participant is None or participant.identity != self._participant.identity:
            return

        logger.info(
            "Participant disconnected",
            extra={"room": self.room_name, "participant": participant.identity},
        )
        self._disconnect_event.set()

    def _on_room_disconnected(self, *args: object) -> None:
        logger.info("Room disconnected", extra={"room": self.room_name})
        self._disconnect_event.set()
