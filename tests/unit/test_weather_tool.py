"""Unit tests for the weather tool.

Uses a mocked aiohttp session so no network access is needed.
"""

from unittest.mock import AsyncMock, Mock

import aiohttp
import pytest

from playground_agent.config import WeatherConfig
from playground_agent.errors import ToolExecutionError, WeatherServiceError
from playground_agent.tools.executor import ToolExecutor, ToolInvocation
from playground_agent.tools.registry import ToolRegistry
from playground_agent.tools.weather import WEATHER_TOOL_NAME, WeatherArgs, WeatherTool


class FakeResponse:
    """Async context manager standing in for aiohttp.ClientResponse."""

    def __init__(self, status: int, body: str = "") -> None:
        self.status = status
        self._body = body

    async def text(self) -> str:
        return self._body

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *args: object) -> None:
        return None


def make_http_session(response: FakeResponse | None = None, error: Exception | None = None) -> Mock:
    session = Mock(spec=aiohttp.ClientSession)
    session.closed = False
    session.close = AsyncMock()
    if error is not None:
        session.get = Mock(side_effect=error)
    else:
        session.get = Mock(return_value=response)
    return session


def make_executor(tool: WeatherTool) -> ToolExecutor:
    registry = ToolRegistry()
    registry.register(tool.definition())
    return ToolExecutor(registry)


def test_build_url() -> None:
    """Test location quoting and verbatim format string."""
    tool = WeatherTool(WeatherConfig(base_url="https://wttr.in/"))

    assert str(tool.build_url("Boston")) == "https://wttr.in/Boston?format=%C+%t"
    assert str(tool.build_url("New York")) == "https://wttr.in/New%20York?format=%C+%t"
    assert str(tool.build_url("a/b")) == "https://wttr.in/a%2Fb?format=%C+%t"


def test_definition() -> None:
    """Test the tool definition exposed to the model."""
    tool = WeatherTool()
    definition = tool.definition()

    assert definition.name == WEATHER_TOOL_NAME == "weather"
    assert definition.description == "Get the weather in a location"
    assert definition.parameters is WeatherArgs
    schema = definition.json_schema()
    assert schema["parameters"]["required"] == ["location"]


@pytest.mark.asyncio
async def test_weather_success() -> None:
    """Test a successful lookup formats the response."""
    http_session = make_http_session(FakeResponse(200, "Partly cloudy +12°C\n"))
    tool = WeatherTool(http_session=http_session)

    result = await tool(WeatherArgs(location="Boston"))

    assert result == "The weather in Boston right now is Partly cloudy +12°C."
    http_session.get.assert_called_once()
    assert str(http_session.get.call_args.args[0]).startswith("https://wttr.in/Boston")


@pytest.mark.asyncio
async def test_weather_non_2xx_raises() -> None:
    """Test a non-2xx status raises WeatherServiceError."""
    tool = WeatherTool(http_session=make_http_session(FakeResponse(404, "Unknown location")))

    with pytest.raises(WeatherServiceError) as exc_info:
        await tool(WeatherArgs(location="Atlantis"))

    assert exc_info.value.status == 404


@pytest.mark.asyncio
async def test_weather_failure_via_executor_is_textual() -> None:
    """Test a failing fetch becomes an error result and is not retried."""
    http_session = make_http_session(FakeResponse(503))
    tool = WeatherTool(http_session=http_session)
    executor = make_executor(tool)

    result = await executor.invoke(ToolInvocation(WEATHER_TOOL_NAME, '{"location": "Boston"}'))

    assert isinstance(result.error, ToolExecutionError)
    assert "Weather API returned status: 503" in result.text
    assert http_session.get.call_count == 1


@pytest.mark.asyncio
async def test_weather_network_error_via_executor() -> None:
    """Test network errors are reported as tool errors."""
    http_session = make_http_session(error=aiohttp.ClientConnectionError("connection refused"))
    executor = make_executor(WeatherTool(http_session=http_session))

    result = await executor.invoke(ToolInvocation(WEATHER_TOOL_NAME, {"location": "Boston"}))

    assert isinstance(result.error, ToolExecutionError)
    assert "connection refused" in result.text


@pytest.mark.asyncio
async def test_weather_empty_location_rejected() -> None:
    """Test schema validation runs before any request."""
    http_session = make_http_session(FakeResponse(200, "Sunny"))
    executor = make_executor(WeatherTool(http_session=http_session))

    result = await executor.invoke(ToolInvocation(WEATHER_TOOL_NAME, {"location": ""}))

    assert not result.ok
    http_session.get.assert_not_called()


@pytest.mark.asyncio
async def test_aclose_leaves_shared_session_open() -> None:
    """Test an injected session is not closed by the tool."""
    http_session = make_http_session(FakeResponse(200))
    tool = WeatherTool(http_session=http_session)

    await tool.aclose()

    http_session.close.assert_not_called()


@pytest.mark.asyncio
async def test_aclose_closes_owned_session() -> None:
    """Test a lazily created session is closed by the tool."""
    tool = WeatherTool()
    session = tool._ensure_session()

    assert not session.closed
    await tool.aclose()
    assert session.closed
