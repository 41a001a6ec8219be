import json
from typing import Literal, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from constants import DEFAULT_ROOM, MAX_ROOM_KEY_LENGTH

RELAY_TYPES = ("offer", "answer", "candidate", "chat")


def normalize_room_key(value, default: str = DEFAULT_ROOM) -> str:
    """Trim a room key and fall back to the default room when it is blank."""
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValueError("room must be a string")
    key = value.strip()
    if not key:
        return default
    if len(key) > MAX_ROOM_KEY_LENGTH:
        raise ValueError(f"room must be at most {MAX_ROOM_KEY_LENGTH} characters")
    return key


# Client -> server

class JoinEnvelope(BaseModel):
    cmd: Literal["join"]
    room: str = Field(default=None, validate_default=True)

    @field_validator("room", mode="before")
    @classmethod
    def _normalize_room(cls, value):
        return normalize_room_key(value)


class RelayEnvelope(BaseModel):
    # raw is the frame exactly as received, text or binary; it is forwarded untouched
    type: Literal["offer", "answer", "candidate", "chat"]
    raw: Union[str, bytes]


class UnknownEnvelope(BaseModel):
    reason: str = "unrecognized"


Envelope = Union[JoinEnvelope, RelayEnvelope, UnknownEnvelope]


# Server -> client

class PeersEnvelope(BaseModel):
    type: Literal["peers"] = "peers"
    count: int


class NewPeerEnvelope(BaseModel):
    type: Literal["new_peer"] = "new_peer"


class RoomFullEnvelope(BaseModel):
    type: Literal["room_full"] = "room_full"
    max: int


def parse_envelope(raw) -> Envelope:
    """Parse one inbound frame. Never raises; anything unusable is UnknownEnvelope."""
    text = raw
    if isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw)
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            return UnknownEnvelope(reason="invalid utf-8")
    try:
        data = json.loads(text)
    except (TypeError, ValueError, RecursionError):
        # RecursionError: nesting deeper than the decoder can follow
        return UnknownEnvelope(reason="invalid json")
    if not isinstance(data, dict):
        return UnknownEnvelope(reason="not an object")

    if data.get("cmd") == "join":
        try:
            return JoinEnvelope.model_validate(data)
        except ValidationError:
            return UnknownEnvelope(reason="invalid join")

    tag = data.get("type")
    if isinstance(tag, str) and tag in RELAY_TYPES:
        return RelayEnvelope(type=tag, raw=raw)
    return UnknownEnvelope(reason=f"unknown tag {tag!r}")
