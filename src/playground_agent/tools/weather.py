"""Weather lookup tool backed by a wttr.in-style text endpoint."""

import logging
from urllib.parse import quote

import aiohttp
from pydantic import BaseModel, Field
from yarl import URL

from playground_agent.config import WeatherConfig
from playground_agent.errors import WeatherServiceError
from playground_agent.tools.registry import ToolDefinition

logger = logging.getLogger(__name__)

WEATHER_TOOL_NAME = "weather"


class WeatherArgs(BaseModel):
    """Arguments for the weather tool."""

    location: str = Field(min_length=1, description="The location to get the weather for")


class WeatherTool:
    """Fetches a one-line weather description for a location.

    Issues a single HTTP GET per call. A non-2xx response raises
    `WeatherServiceError`; network errors propagate as raised by aiohttp.
    Neither is retried.
    """

    def __init__(
        self,
        config: WeatherConfig | None = None,
        http_session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize weather tool.

        Args:
            config: Endpoint and timeout configuration
            http_session: Optional shared session (not closed by `aclose()`)
        """
        self.config = config or WeatherConfig()
        self._session = http_session
        self._owns_session = http_session is None

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_s)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    def build_url(self, location: str) -> URL:
        """Build the request URL for a location.

        The format string is sent verbatim; wttr.in reads `%C` and `%t` as
        placeholders and `+` as a space.
        """
        return URL(
            f"{self.config.base_url}/{quote(location, safe='')}?format={self.config.format}",
            encoded=True,
        )

    async def __call__(self, args: WeatherArgs) -> str:
        """Fetch current weather for `args.location`.

        Raises:
            WeatherServiceError: If the endpoint returns a non-2xx status
        """
        logger.debug(
            "Executing weather function",
            extra={"location": args.location},
        )

        session = self._ensure_session()
        async with session.get(self.build_url(args.location)) as response:
            if not 200 <= response.status < 300:
                raise WeatherServiceError(response.status)
            weather = (await response.text()).strip()

        return f"The weather in {args.location} right now is {weather}."

    def definition(self) -> ToolDefinition:
        """Tool definition for registration."""
        return ToolDefinition(
            name=WEATHER_TOOL_NAME,
            description="Get the weather in a location",
            parameters=WeatherArgs,
            executor=self,
        )

    async def aclose(self) -> None:
        """Close the HTTP session if this tool created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
