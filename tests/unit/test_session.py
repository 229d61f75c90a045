"""Unit tests for session metrics and the session handle."""

import pytest

from playground_agent.errors import ReconfigurationError, SessionUnavailableError
from playground_agent.session import SessionHandle, SessionMetrics
from playground_agent.session_config import parse_session_config
from tests.helpers.fakes import MockModelSession, make_metadata


def test_session_metrics_initial_state() -> None:
    """Test initial state of session metrics."""
    metrics = SessionMetrics()

    assert metrics.tool_calls == 0
    assert metrics.tool_failures == 0
    assert metrics.reconfigurations_accepted == 0
    assert metrics.session_end_ts is None


def test_session_metrics_record_tool_calls() -> None:
    """Test recording tool call outcomes."""
    metrics = SessionMetrics()

    metrics.record_tool_call(failed=False)
    metrics.record_tool_call(failed=True)

    assert metrics.tool_calls == 2
    assert metrics.tool_failures == 1


def test_session_metrics_record_reconfigurations() -> None:
    """Test recording reconfiguration outcomes."""
    metrics = SessionMetrics()

    metrics.record_reconfiguration("accepted")
    metrics.record_reconfiguration("rejected")
    metrics.record_reconfiguration("failed")
    metrics.record_reconfiguration("failed")

    summary = metrics.summary()
    assert summary["reconfigurations_accepted"] == 1
    assert summary["reconfigurations_rejected"] == 1
    assert summary["reconfigurations_failed"] == 2

    with pytest.raises(ValueError, match="Unknown reconfiguration outcome"):
        metrics.record_reconfiguration("ignored")


def test_session_metrics_finalize() -> None:
    """Test finalizing session metrics."""
    metrics = SessionMetrics()

    metrics.finalize()
    end = metrics.session_end_ts
    metrics.finalize()

    assert end is not None
    assert metrics.session_end_ts == end
    assert metrics.summary()["session_duration_s"] >= 0


@pytest.mark.asyncio
async def test_handle_apply_without_session() -> None:
    """Test applying before a session is bound."""
    handle = SessionHandle()

    assert not handle.is_live
    with pytest.raises(SessionUnavailableError):
        await handle.apply(parse_session_config(make_metadata()))


@pytest.mark.asyncio
async def test_handle_apply_replaces_config() -> None:
    """Test a successful apply swaps the config reference."""
    initial = parse_session_config(make_metadata())
    updated = parse_session_config(make_metadata(voice="echo"))
    session = MockModelSession(initial)
    handle = SessionHandle()
    handle.bind(session, initial)

    await handle.apply(updated)

    assert handle.config is updated
    assert session.updates == [updated]


@pytest.mark.asyncio
async def test_handle_apply_failure_keeps_config() -> None:
    """Test a model failure leaves the previous config current."""
    initial = parse_session_config(make_metadata())
    session = MockModelSession(initial)
    session.fail_updates = True
    handle = SessionHandle()
    handle.bind(session, initial)

    with pytest.raises(ReconfigurationError):
        await handle.apply(parse_session_config(make_metadata(voice="echo")))

    assert handle.config is initial


def test_handle_clear() -> None:
    """Test clear() detaches and returns the session."""
    initial = parse_session_config(make_metadata())
    session = MockModelSession(initial)
    handle = SessionHandle()
    handle.bind(session, initial)

    assert handle.clear() is session
    assert handle.session is None
    assert handle.config is None
    assert not handle.is_live
    assert handle.clear() is None
