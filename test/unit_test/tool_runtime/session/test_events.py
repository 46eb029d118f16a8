from __future__ import annotations

import pytest

from voicedeck_ai.tool_runtime.session import (
    BusEvent,
    BusEventType,
    ErrorPayload,
    NoPayload,
    RemotePayload,
    SessionCreated,
)
from voicedeck_ai.tool_runtime.session.events import PAYLOAD_TYPES


def test_every_event_type_has_a_payload_class() -> None:
    assert set(PAYLOAD_TYPES) == set(BusEventType)


def test_event_values_use_protocol_names() -> None:
    assert BusEventType.create_session.value == "createSession"
    assert BusEventType.audio_input.value == "audioInput"
    assert BusEventType("streamComplete") is BusEventType.stream_complete


def test_payload_type_is_checked() -> None:
    with pytest.raises(TypeError, match="sessionCreated event requires a SessionCreated payload"):
        BusEvent(BusEventType.session_created, NoPayload())

    event = BusEvent(BusEventType.session_created, SessionCreated(session_id="s"))
    assert event.payload.session_id == "s"


def test_simple_events_default_to_no_payload() -> None:
    assert BusEvent(BusEventType.stop_audio).payload == NoPayload()
    assert BusEvent.simple(BusEventType.disconnect).type is BusEventType.disconnect


def test_error_factory() -> None:
    event = BusEvent.error("remote failed", details="initiateSession")
    assert event.payload == ErrorPayload(message="remote failed", details="initiateSession")


def test_remote_payload_accessors() -> None:
    payload = RemotePayload(data={"role": "ASSISTANT", "type": "TEXT", "content": "hi", "stopReason": "END_TURN"})
    assert (payload.role, payload.type, payload.content, payload.stop_reason) == ("ASSISTANT", "TEXT", "hi", "END_TURN")
    assert RemotePayload().stop_reason is None
