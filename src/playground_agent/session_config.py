"""Participant-supplied session configuration.

Defines the validated `SessionConfig` value type and the pure
`parse_session_config()` function shared by the initial-metadata path and the
`pg.updateConfig` reconfiguration path.

Wire shape (participant metadata and RPC payload):

    {
        "instructions": "Be helpful",
        "voice": "alloy",
        "temperature": 0.7,
        "turn_detection": "{\\"type\\": \\"server_vad\\"}"
    }

`turn_detection` is itself a JSON document nested inside a string. A JSON
`null` disables automatic turn detection.
"""

import json
import math
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from playground_agent.errors import InvalidFieldError, MalformedConfigError


class Modality(str, Enum):
    """Output modalities supported by the realtime model."""

    TEXT = "text"
    AUDIO = "audio"


DEFAULT_MODALITIES: frozenset[Modality] = frozenset({Modality.TEXT, Modality.AUDIO})

# Sentinel for an unbounded response length
UNLIMITED_TOKENS = "inf"

REQUIRED_FIELDS = ("instructions", "voice", "temperature", "turn_detection")


class ServerVadTurnDetection(BaseModel):
    """Server-side voice activity detection turn policy."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["server_vad"]
    threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    prefix_padding_ms: int | None = Field(default=None, ge=0)
    silence_duration_ms: int | None = Field(default=None, ge=0)
    create_response: bool | None = None
    interrupt_response: bool | None = None


class SemanticVadTurnDetection(BaseModel):
    """Semantic (end-of-utterance classifier) turn policy."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["semantic_vad"]
    eagerness: Literal["low", "medium", "high", "auto"] | None = None
    create_response: bool | None = None
    interrupt_response: bool | None = None


TurnDetection = Annotated[
    ServerVadTurnDetection | SemanticVadTurnDetection,
    Field(discriminator="type"),
]

_TURN_DETECTION_ADAPTER: TypeAdapter[TurnDetection | None] = TypeAdapter(TurnDetection | None)


class SessionConfig(BaseModel):
    """Behavioral parameters of a live conversational session.

    Instances are immutable. A reconfiguration replaces the whole value.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    instructions: str = Field(min_length=1, description="System instructions for the model")
    voice: str = Field(min_length=1, description="Voice identifier")
    temperature: float = Field(ge=0.0, allow_inf_nan=False, description="Sampling temperature")
    turn_detection: TurnDetection | None = Field(
        description="Turn detection policy, None for manual turns"
    )
    modalities: frozenset[Modality] = Field(default=DEFAULT_MODALITIES)
    max_response_output_tokens: int | Literal["inf"] = Field(
        default=UNLIMITED_TOKENS,
        description="Maximum output tokens per response, 'inf' for no limit",
    )

    @field_validator("instructions", "voice")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject whitespace-only text."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("modalities")
    @classmethod
    def validate_modalities(cls, v: frozenset[Modality]) -> frozenset[Modality]:
        """Require at least one modality."""
        if not v:
            raise ValueError("at least one modality is required")
        return v

    @field_validator("max_response_output_tokens")
    @classmethod
    def validate_token_limit(cls, v: int | str) -> int | str:
        """Validate that a finite token limit is positive."""
        if isinstance(v, int) and v < 1:
            raise ValueError("must be a positive integer or 'inf'")
        return v

    @property
    def has_token_limit(self) -> bool:
        """Check whether responses are length-limited."""
        return self.max_response_output_tokens != UNLIMITED_TOKENS

    def turn_detection_payload(self) -> dict[str, Any] | None:
        """Turn detection policy as a plain dict (None when disabled)."""
        if self.turn_detection is None:
            return None
        return self.turn_detection.model_dump(exclude_none=True)

    def to_metadata(self) -> str:
        """Serialize to the participant metadata wire shape."""
        return json.dumps(
            {
                "instructions": self.instructions,
                "voice": self.voice,
                "temperature": self.temperature,
                "turn_detection": json.dumps(self.turn_detection_payload()),
                "modalities": sorted(m.value for m in self.modalities),
                "max_response_output_tokens": self.max_response_output_tokens,
            }
        )


def _decode_object(raw: str | bytes) -> dict[str, Any]:
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedConfigError(f"Configuration is not valid UTF-8: {e}") from e

    if not isinstance(raw, str):
        raise MalformedConfigError(
            f"Configuration must be JSON text, got {type(raw).__name__}"
        )

    # ValueError also covers integers past the int-to-str digit limit
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise MalformedConfigError(f"Configuration is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedConfigError(
            f"Configuration must be a JSON object, got {type(data).__name__}"
        )
    return data


def _coerce_temperature(value: Any) -> float:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int | float | str):
        raise InvalidFieldError("temperature", f"expected a number, got {value!r}")

    try:
        temperature = float(value)
    except (ValueError, OverflowError) as e:
        raise InvalidFieldError("temperature", f"expected a number, got {value!r}") from e

    if not math.isfinite(temperature):
        raise InvalidFieldError("temperature", "must be finite")
    if temperature < 0:
        raise InvalidFieldError("temperature", "must be non-negative")
    return temperature


def _decode_turn_detection(value: Any) -> ServerVadTurnDetection | SemanticVadTurnDetection | None:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError as e:
            raise InvalidFieldError("turn_detection", f"not valid JSON: {e}") from e

    try:
        return _TURN_DETECTION_ADAPTER.validate_python(value)
    except ValidationError as e:
        raise InvalidFieldError(
            "turn_detection", f"unrecognized turn detection policy: {value!r}"
        ) from e


def parse_session_config(raw: str | bytes) -> SessionConfig:
    """Parse and validate a session configuration payload.

    Args:
        raw: JSON text from participant metadata or an RPC payload

    Returns:
        Validated session configuration

    Raises:
        MalformedConfigError: If the payload is not a JSON object
        InvalidFieldError: If a required field is missing or invalid
    """
    data = _decode_object(raw)

    for name in REQUIRED_FIELDS:
        if name not in data:
            raise InvalidFieldError(name, "field is required")

    fields: dict[str, Any] = {
        "instructions": data["instructions"],
        "voice": data["voice"],
        "temperature": _coerce_temperature(data["temperature"]),
        "turn_detection": _decode_turn_detection(data["turn_detection"]),
    }
    if data.get("modalities") is not None:
        fields["modalities"] = data["modalities"]
    if data.get("max_response_output_tokens") is not None:
        fields["max_response_output_tokens"] = data["max_response_output_tokens"]

    try:
        return SessionConfig.model_validate(fields)
    except ValidationError as e:
        error = e.errors()[0]
        field = str(error["loc"][0]) if error["loc"] else "config"
        raise InvalidFieldError(field, error["msg"]) from e
