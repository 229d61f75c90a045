"""Registry of tools the model may call during a session."""

import logging
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from playground_agent.errors import DuplicateToolError, ToolNotFoundError

logger = logging.getLogger(__name__)

ToolExecutorFn = Callable[[Any], Awaitable[str]]


@dataclass(frozen=True)
class ToolDefinition:
    """A named, schema-typed function exposed to the model.

    Attributes:
        name: Unique tool name as seen by the model
        description: Natural-language description used by the model to pick the tool
        parameters: Pydantic model describing and validating the arguments
        executor: Coroutine function called with a validated `parameters` instance
    """

    name: str
    description: str
    parameters: type[BaseModel]
    executor: ToolExecutorFn

    def json_schema(self) -> dict[str, Any]:
        """Render the function-calling schema for this tool."""
        parameters = self.parameters.model_json_schema()
        parameters.pop("title", None)
        return {
            "type": "function",
            "name": self.name,
            "description": self.description,
            "parameters": parameters,
        }


class ToolRegistry:
    """Holds the tools available to a session.

    Names are unique: registering a name twice raises `DuplicateToolError`
    and keeps the first definition. The registry is frozen once the model
    session is created.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._frozen = False

    def register(self, definition: ToolDefinition) -> None:
        """Register a tool definition.

        Args:
            definition: Tool to add

        Raises:
            DuplicateToolError: If a tool with the same name exists
            RuntimeError: If the registry is frozen
        """
        if self._frozen:
            raise RuntimeError("Tool registry is frozen; tools are fixed at session creation")
        if definition.name in self._tools:
            raise DuplicateToolError(definition.name)

        self._tools[definition.name] = definition
        logger.info("Registered tool", extra={"tool": definition.name})

    def lookup(self, name: str) -> ToolDefinition:
        """Resolve a tool by name.

        Raises:
            ToolNotFoundError: If no tool has this name
        """
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def freeze(self) -> None:
        """Make the registry read-only."""
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def names(self) -> list[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._tools.values())
