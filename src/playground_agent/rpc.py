"""Live reconfiguration remote procedure.

Response contract (always exactly one JSON object):

- `{"changed": true}`: payload parsed and applied to the live session
- `{"changed": false}`: caller is not the session's participant (silent no-op)
- `{"changed": false, "error": {...}}`: authorized caller, but the payload did
  not parse, no session is live, or the model rejected the update
"""

import json
import logging
from typing import Any

from playground_agent.errors import (
    ConfigParseError,
    InvalidFieldError,
    ReconfigurationError,
    SessionUnavailableError,
)
from playground_agent.session import SessionHandle, SessionMetrics
from playground_agent.session_config import parse_session_config
from playground_agent.transport.base import RpcRequest

logger = logging.getLogger(__name__)


def _response(changed: bool, error: dict[str, Any] | None = None) -> str:
    body: dict[str, Any] = {"changed": changed}
    if error is not None:
        body["error"] = error
    return json.dumps(body)


class ReconfigurationEndpoint:
    """Applies `pg.updateConfig` calls from the session's participant."""

    def __init__(
        self,
        participant_identity: str,
        handle: SessionHandle,
        metrics: SessionMetrics | None = None,
    ) -> None:
        """Initialize reconfiguration endpoint.

        Args:
            participant_identity: Only this caller may reconfigure the session
            handle: Reference to the live session
            metrics: Optional session metrics
        """
        self.participant_identity = participant_identity
        self.session_handle = handle
        self.metrics = metrics

    async def handle(self, request: RpcRequest) -> str:
        """Handle one reconfiguration request.

        Args:
            request: Inbound RPC with caller identity and JSON payload

        Returns:
            str: JSON acknowledgment
        """
        if request.caller_identity != self.participant_identity:
            logger.warning(
                "Ignoring reconfiguration from unauthorized caller",
                extra={"caller": request.caller_identity, "request_id": request.request_id},
            )
            self._record("rejected")
            return _response(changed=False)

        try:
            config = parse_session_config(request.payload)
        except ConfigParseError as e:
            error: dict[str, Any] = {"type": e.error_type, "message": str(e)}
            if isinstance(e, InvalidFieldError):
                error["field"] = e.field
            logger.warning(
                "Rejected malformed reconfiguration payload",
                extra={"request_id": request.request_id, "error": str(e)},
            )
            self._record("failed")
            return _response(changed=False, error=error)

        try:
            await self.session_handle.apply(config)
        except (SessionUnavailableError, ReconfigurationError) as e:
            logger.error(
                "Failed to apply reconfiguration",
                extra={"request_id": request.request_id, "error": str(e)},
            )
            self._record("failed")
            return _response(changed=False, error={"type": e.error_type, "message": str(e)})

        logger.info(
            "Session reconfigured",
            extra={
                "request_id": request.request_id,
                "voice": config.voice,
                "temperature": config.temperature,
                "turn_detection": config.turn_detection_payload(),
            },
        )
        self._record("accepted")
        return _response(changed=True)

    def _record(self, outcome: str) -> None:
        if self.metrics is not None:
            self.metrics.record_reconfiguration(outcome)
