"""
Event types and payload schemas for the chat WebSocket protocol.

Every frame is a JSON text frame shaped {"event": <name>, "data": <object>}
in both directions. Inbound payloads are validated with Pydantic models at
the edge so the presence core only ever sees typed values.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from shared.config.constants import Limits
from shared.config.settings import settings


class InvalidFrame(ValueError):
    """Inbound frame is not JSON, names an unknown event, or fails validation."""


class InboundEvent(str, Enum):
    """Events a client may send."""

    AUTHENTICATE = "authenticate"
    JOIN_ROOM = "join-room"
    JOIN_VOICE = "join-voice"
    LEAVE_VOICE = "leave-voice"
    SEND_MESSAGE = "send-message"
    WEBRTC_OFFER = "webrtc-offer"
    WEBRTC_ANSWER = "webrtc-answer"
    WEBRTC_ICE_CANDIDATE = "webrtc-ice-candidate"
    START_SPEAKING = "start-speaking"
    STOP_SPEAKING = "stop-speaking"
    PEER_ID = "peer-id"


class OutboundEvent(str, Enum):
    """Events the gateway sends."""

    AUTHENTICATED = "authenticated"
    AUTH_ERROR = "auth-error"
    ROOMS_LIST = "rooms-list"
    ROOM_INFO = "room-info"
    ONLINE_USERS = "online-users"
    MESSAGE_HISTORY = "message-history"
    NEW_MESSAGE = "new-message"
    MESSAGE_ERROR = "message-error"
    USER_JOINED_ROOM = "user-joined-room"
    USER_LEFT_ROOM = "user-left-room"
    USER_JOINED_VOICE = "user-joined-voice"
    USER_LEFT_VOICE = "user-left-voice"
    VOICE_USERS_UPDATE = "voice-users-update"
    SPEAKING_USERS_UPDATE = "speaking-users-update"
    USER_PEER_ID = "user-peer-id"
    WEBRTC_OFFER = "webrtc-offer"
    WEBRTC_ANSWER = "webrtc-answer"
    WEBRTC_ICE_CANDIDATE = "webrtc-ice-candidate"


def frame(event: OutboundEvent, data: Any) -> dict[str, Any]:
    """Build an outbound frame."""
    return {"event": event.value, "data": data}


# =============================================================================
# Inbound payloads
# =============================================================================


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class EmptyPayload(_Payload):
    """join-voice, leave-voice, start-speaking, stop-speaking."""


class AuthenticatePayload(_Payload):
    user_id: int = Field(alias="userId", gt=0, le=Limits.MAX_ENTITY_ID)


class JoinRoomPayload(_Payload):
    room_id: int = Field(alias="roomId", gt=0, le=Limits.MAX_ENTITY_ID)


class SendMessagePayload(_Payload):
    text: str

    @field_validator("text")
    @classmethod
    def validate_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message text is empty")
        if len(value) > settings.chat_max_message_length:
            raise ValueError("message text is too long")
        return value


class OfferPayload(_Payload):
    to: str = Field(min_length=1)
    offer: Any = Field(...)


class AnswerPayload(_Payload):
    to: str = Field(min_length=1)
    answer: Any = Field(...)


class IceCandidatePayload(_Payload):
    to: str = Field(min_length=1)
    candidate: Any = Field(...)


class PeerIdPayload(_Payload):
    peer_id: str = Field(alias="peerId", min_length=1, max_length=256)


PAYLOAD_MODELS: dict[InboundEvent, type[_Payload]] = {
    InboundEvent.AUTHENTICATE: AuthenticatePayload,
    InboundEvent.JOIN_ROOM: JoinRoomPayload,
    InboundEvent.JOIN_VOICE: EmptyPayload,
    InboundEvent.LEAVE_VOICE: EmptyPayload,
    InboundEvent.SEND_MESSAGE: SendMessagePayload,
    InboundEvent.WEBRTC_OFFER: OfferPayload,
    InboundEvent.WEBRTC_ANSWER: AnswerPayload,
    InboundEvent.WEBRTC_ICE_CANDIDATE: IceCandidatePayload,
    InboundEvent.START_SPEAKING: EmptyPayload,
    InboundEvent.STOP_SPEAKING: EmptyPayload,
    InboundEvent.PEER_ID: PeerIdPayload,
}


@dataclass(frozen=True, slots=True)
class InboundFrame:
    """A parsed, validated client frame."""

    event: InboundEvent
    payload: _Payload


def parse_frame(raw: str) -> InboundFrame:
    """
    Parse and validate a client text frame.

    join-room also accepts a bare room id as data.

    Raises:
        InvalidFrame: If the frame cannot be dispatched.
    """
    try:
        message = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidFrame("frame is not valid JSON") from e

    if not isinstance(message, dict):
        raise InvalidFrame("frame must be a JSON object")

    try:
        event = InboundEvent(message.get("event"))
    except ValueError as e:
        raise InvalidFrame(f"unknown event: {message.get('event')!r}") from e

    data = message.get("data")
    if data is None:
        data = {}
    elif event is InboundEvent.JOIN_ROOM and isinstance(data, int) and not isinstance(data, bool):
        data = {"roomId": data}

    if not isinstance(data, dict):
        raise InvalidFrame(f"{event.value} data must be an object")

    try:
        payload = PAYLOAD_MODELS[event].model_validate(data)
    except ValidationError as e:
        raise InvalidFrame(f"invalid {event.value} payload: {e.error_count()} error(s)") from e

    return InboundFrame(event=event, payload=payload)
