"""Unit tests for the LiveKit room transport.

Uses mocked LiveKit SDK objects to verify participant discovery, RPC
registration and disconnect tracking.
"""

import asyncio
from collections.abc import Callable
from unittest.mock import AsyncMock, Mock

import pytest
from livekit import rtc

from playground_agent.transport.base import RpcRequest
from playground_agent.transport.livekit_transport import LiveKitRoomTransport


@pytest.fixture
def mock_participant() -> Mock:
    """Create mock RemoteParticipant."""
    participant = Mock(spec=rtc.RemoteParticipant)
    participant.identity = "test-participant"
    participant.name = "Test Participant"
    participant.metadata = '{"voice": "alloy"}'
    return participant


@pytest.fixture
def mock_ctx(mock_participant: Mock) -> Mock:
    """Create mock JobContext with a connected room."""
    room = Mock(spec=rtc.Room)
    room.name = "test-room"
    room.on = Mock()
    room.local_participant = Mock()
    room.local_participant.register_rpc_method = Mock()
    room.local_participant.unregister_rpc_method = Mock()

    ctx = Mock()
    ctx.room = room
    ctx.wait_for_participant = AsyncMock(return_value=mock_participant)
    return ctx


def room_handler(ctx: Mock, event: str) -> Callable[..., None]:
    """Return the callback the transport registered for a room event."""
    for call in ctx.room.on.call_args_list:
        if call.args[0] == event:
            return call.args[1]
    raise AssertionError(f"No handler registered for {event}")


def test_transport_subscribes_to_room_events(mock_ctx: Mock) -> None:
    """Test room event subscriptions."""
    transport = LiveKitRoomTransport(mock_ctx)

    events = [call.args[0] for call in mock_ctx.room.on.call_args_list]
    assert "participant_disconnected" in events
    assert "disconnected" in events
    assert transport.transport_type == "livekit"
    assert transport.room_name == "test-room"


@pytest.mark.asyncio
async def test_wait_for_participant(mock_ctx: Mock) -> None:
    """Test participant conversion."""
    transport = LiveKitRoomTransport(mock_ctx)

    participant = await transport.wait_for_participant()

    assert participant.identity == "test-participant"
    assert participant.name == "Test Participant"
    assert participant.metadata == '{"voice": "alloy"}'


@pytest.mark.asyncio
async def test_wait_for_participant_without_metadata(
    mock_ctx: Mock, mock_participant: Mock
) -> None:
    """Test empty metadata is normalized to an empty string."""
    mock_participant.metadata = None
    transport = LiveKitRoomTransport(mock_ctx)

    participant = await transport.wait_for_participant()

    assert participant.metadata == ""


@pytest.mark.asyncio
async def test_register_rpc_method_wraps_invocation(mock_ctx: Mock) -> None:
    """Test RPC invocation data is converted to RpcRequest."""
    transport = LiveKitRoomTransport(mock_ctx)
    received: list[RpcRequest] = []

    async def handler(request: RpcRequest) -> str:
        received.append(request)
        return '{"changed": true}'

    transport.register_rpc_method("pg.updateConfig", handler)

    local = mock_ctx.room.local_participant
    local.register_rpc_method.assert_called_once()
    method, invoke = local.register_rpc_method.call_args.args
    assert method == "pg.updateConfig"

    data = Mock(
        request_id="req-1",
        caller_identity="test-participant",
        payload="{}",
        response_timeout=10.0,
    )
    response = await invoke(data)

    assert response == '{"changed": true}'
    assert received == [
        RpcRequest(
            caller_identity="test-participant",
            payload="{}",
            request_id="req-1",
            response_timeout=10.0,
        )
    ]


@pytest.mark.asyncio
async def test_unregister_rpc_method(mock_ctx: Mock) -> None:
    """Test unregistration is forwarded once and unknown names are ignored."""
    transport = LiveKitRoomTransport(mock_ctx)
    transport.register_rpc_method("pg.updateConfig", AsyncMock(return_value="{}"))

    transport.unregister_rpc_method("pg.updateConfig")
    transport.unregister_rpc_method("pg.updateConfig")
    transport.unregister_rpc_method("never.registered")

    mock_ctx.room.local_participant.unregister_rpc_method.assert_called_once_with(
        "pg.updateConfig"
    )


@pytest.mark.asyncio
async def test_disconnect_of_session_participant(mock_ctx: Mock, mock_participant: Mock) -> None:
    """Test the session participant leaving ends wait_for_disconnect."""
    transport = LiveKitRoomTransport(mock_ctx)
    await transport.wait_for_participant()
    on_disconnected = room_handler(mock_ctx, "participant_disconnected")

    other = Mock(spec=rtc.RemoteParticipant)
    other.identity = "someone-else"
    on_disconnected(other)

    waiter = asyncio.create_task(transport.wait_for_disconnect())
    await asyncio.sleep(0)
    assert not waiter.done()

    on_disconnected(mock_participant)
    await asyncio.wait_for(waiter, timeout=1.0)


@pytest.mark.asyncio
async def test_room_disconnect(mock_ctx: Mock) -> None:
    """Test a room disconnect ends wait_for_disconnect."""
    transport = LiveKitRoomTransport(mock_ctx)

    room_handler(mock_ctx, "disconnected")("reason")

    await asyncio.wait_for(transport.wait_for_disconnect(), timeout=1.0)


@pytest.mark.asyncio
async def test_close_releases_registrations(mock_ctx: Mock) -> None:
    """Test close() unregisters everything and wakes waiters."""
    transport = LiveKitRoomTransport(mock_ctx)
    transport.register_rpc_method("a", AsyncMock(return_value="{}"))
    transport.register_rpc_method("b", AsyncMock(return_value="{}"))

    transport.close()

    unregistered = {
        call.args[0]
        for call in mock_ctx.room.local_participant.unregister_rpc_method.call_args_list
    }
    assert unregistered == {"a", "b"}
    await asyncio.wait_for(transport.wait_for_disconnect(), timeout=1.0)
