"""Transport layer for the participant connection."""

from playground_agent.transport.base import Participant, RoomTransport, RpcHandler, RpcRequest

__all__ = ["Participant", "RoomTransport", "RpcHandler", "RpcRequest"]
