"""Tools callable by the realtime model."""

from playground_agent.tools.executor import ToolExecutor, ToolInvocation, ToolResult
from playground_agent.tools.registry import ToolDefinition, ToolRegistry
from playground_agent.tools.weather import WEATHER_TOOL_NAME, WeatherArgs, WeatherTool

__all__ = [
    "ToolDefinition",
    "ToolExecutor",
    "ToolInvocation",
    "ToolRegistry",
    "ToolResult",
    "WEATHER_TOOL_NAME",
    "WeatherArgs",
    "WeatherTool",
]
