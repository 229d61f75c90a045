"""Tool invocation with failure isolation.

Every failure on the tool path (unknown tool, bad arguments, executor error or
timeout) is converted into a `ToolResult` carrying a textual error, so a single
failing call never terminates the session.
"""

import asyncio
import json
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from playground_agent.errors import (
    InvalidArgumentsError,
    ToolError,
    ToolExecutionError,
)
from playground_agent.session import SessionMetrics
from playground_agent.tools.registry import ToolDefinition, ToolRegistry

logger = logging.getLogger(__name__)


@dataclass
class ToolInvocation:
    """A tool call requested by the model."""

    tool_name: str
    raw_arguments: str | Mapping[str, Any]
    call_id: str | None = None


@dataclass
class ToolResult:
    """Outcome of a tool invocation."""

    tool_name: str
    output: str = ""
    error: ToolError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def text(self) -> str:
        """Text delivered back into the conversation."""
        if self.error is None:
            return self.output
        return f"Error calling tool '{self.tool_name}': {self.error.message}"


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item["loc"]) or "arguments"
        parts.append(f"{loc}: {item['msg']}")
    return "; ".join(parts)


class ToolExecutor:
    """Resolves, validates and runs tool invocations against a registry."""

    def __init__(
        self,
        registry: ToolRegistry,
        timeout_s: float | None = None,
        metrics: SessionMetrics | None = None,
    ) -> None:
        """Initialize tool executor.

        Args:
            registry: Tools available to the session
            timeout_s: Per-invocation timeout in seconds (None for no limit)
            metrics: Optional session metrics to record calls into
        """
        self.registry = registry
        self.timeout_s = timeout_s
        self.metrics = metrics

    async def invoke(self, invocation: ToolInvocation) -> ToolResult:
        """Invoke a tool and return its result or a textual error.

        Args:
            invocation: Tool name and raw arguments from the model

        Returns:
            ToolResult: Successful output or wrapped ToolError
        """
        start = time.monotonic()
        try:
            output = await self._run(invocation)
        except ToolError as e:
            logger.warning(
                "Tool invocation failed",
                extra={
                    "tool": invocation.tool_name,
                    "call_id": invocation.call_id,
                    "error_type": e.error_type,
                    "error": e.message,
                },
            )
            self._record(failed=True)
            return ToolResult(tool_name=invocation.tool_name, error=e)

        logger.info(
            "Tool invocation completed",
            extra={
                "tool": invocation.tool_name,
                "call_id": invocation.call_id,
                "duration_ms": (time.monotonic() - start) * 1000.0,
            },
        )
        self._record(failed=False)
        return ToolResult(tool_name=invocation.tool_name, output=output)

    async def _run(self, invocation: ToolInvocation) -> str:
        definition = self.registry.lookup(invocation.tool_name)
        arguments = self.validate_arguments(definition, invocation.raw_arguments)

        logger.debug(
            "Executing tool",
            extra={"tool": definition.name, "arguments": arguments.model_dump()},
        )

        try:
            if self.timeout_s is None:
                result = await definition.executor(arguments)
            else:
                result = await asyncio.wait_for(
                    definition.executor(arguments), timeout=self.timeout_s
                )
        except TimeoutError as e:
            raise ToolExecutionError(
                definition.name, f"timed out after {self.timeout_s} seconds"
            ) from e
        except Exception as e:
            raise ToolExecutionError(definition.name, str(e) or type(e).__name__) from e

        return str(result)

    @staticmethod
    def validate_arguments(
        definition: ToolDefinition, raw_arguments: str | Mapping[str, Any]
    ) -> BaseModel:
        """Decode and validate raw arguments against the tool's schema.

        Raises:
            InvalidArgumentsError: If arguments are undecodable or do not match
        """
        if isinstance(raw_arguments, str):
            if not raw_arguments.strip():
                raw_arguments = "{}"
            try:
                data = json.loads(raw_arguments)
            except json.JSONDecodeError as e:
                raise InvalidArgumentsError(
                    definition.name, f"arguments are not valid JSON: {e}"
                ) from e
        else:
            data = dict(raw_arguments)

        if not isinstance(data, dict):
            raise InvalidArgumentsError(
                definition.name, f"arguments must be an object, got {type(data).__name__}"
            )

        try:
            return definition.parameters.model_validate(data)
        except ValidationError as e:
            raise InvalidArgumentsError(definition.name, _format_validation_error(e)) from e

    def _record(self, failed: bool) -> None:
        if self.metrics is not None:
            self.metrics.record_tool_call(failed=failed)
