"""Base transport abstraction for the participant connection.

Defines the interface the orchestrator needs from the realtime transport:
waiting for the participant, registering remote procedures, and observing
disconnection.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class Participant:
    """Remote participant the session is created for."""

    identity: str
    metadata: str = ""
    name: str = ""


@dataclass(frozen=True)
class RpcRequest:
    """An inbound remote procedure call."""

    caller_identity: str
    payload: str
    request_id: str = ""
    response_timeout: float = 0.0


RpcHandler = Callable[[RpcRequest], Awaitable[str]]


class RoomTransport(ABC):
    """Bidirectional realtime channel to exactly one participant."""

    @abstractmethod
    async def wait_for_participant(self) -> Participant:
        """Block until a participant joins.

        Returns:
            Participant: The joined participant
        """
        pass

    @abstractmethod
    def register_rpc_method(self, method: str, handler: RpcHandler) -> None:
        """Expose `handler` as remote procedure `method`.

        The handler's return value is sent back as the RPC response.
        """
        pass

    @abstractmethod
    def unregister_rpc_method(self, method: str) -> None:
        """Remove a previously registered remote procedure."""
        pass

    @abstractmethod
    async def wait_for_disconnect(self) -> None:
        """Block until the participant disconnects or the transport closes."""
        pass

    @property
    @abstractmethod
    def transport_type(self) -> str:
        """Transport type identifier (e.g., 'livekit')."""
        pass
