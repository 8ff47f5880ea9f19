"""Unit and property-based tests for the EVI message codec."""
import json

import pytest
from hypothesis import given
from hypothesis import strategies as st

from evichat.errors import DecodeError
from evichat.protocol import (
    EVENT_TYPES,
    AssistantMessageEvent,
    AudioOutputEvent,
    ChatMetadataEvent,
    EmotionScore,
    ErrorEvent,
    UnknownEvent,
    UserInterruptionEvent,
    UserMessageEvent,
    decode_frame,
    encode_audio_input,
    encode_session_settings,
    encode_user_input,
    parse_frame,
    top_three,
)

USER_MESSAGE = (
    '{"type":"user_message","message":{"role":"user","content":"hi"},'
    '"models":{"prosody":{"scores":{"joy":0.9,"calm":0.5,"anger":0.1,"fear":0.05}}}}'
)


class TestDecodeFrame:
    """Tests for inbound frame decoding."""

    def test_user_message(self):
        """Test decoding a user transcript with prosody scores."""
        event = decode_frame(USER_MESSAGE)

        assert isinstance(event, UserMessageEvent)
        assert event.message.role == "user"
        assert event.message.content == "hi"
        assert event.prosody_scores == {"joy": 0.9, "calm": 0.5, "anger": 0.1, "fear": 0.05}
        assert event.raw == USER_MESSAGE

    def test_assistant_message_without_models(self):
        """Test that missing prosody means no scores, not an error."""
        event = decode_frame(json.dumps({
            "type": "assistant_message",
            "message": {"role": "assistant", "content": "Hello!"},
        }))

        assert isinstance(event, AssistantMessageEvent)
        assert event.prosody_scores == {}

    def test_assistant_message_with_empty_prosody(self):
        event = decode_frame(json.dumps({
            "type": "assistant_message",
            "message": {"role": "assistant", "content": "Hello!"},
            "models": {"prosody": None},
        }))

        assert isinstance(event, AssistantMessageEvent)
        assert event.prosody_scores == {}

    def test_audio_output(self):
        event = decode_frame('{"type":"audio_output","data":"UklGRg==","id":"a1"}')

        assert isinstance(event, AudioOutputEvent)
        assert event.data == "UklGRg=="

    def test_error_event(self):
        event = decode_frame(json.dumps({
            "type": "error",
            "code": "E0100",
            "slug": "unauthorized",
            "message": "bad key",
        }))

        assert isinstance(event, ErrorEvent)
        assert event.code == "E0100"
        assert event.message == "bad key"

    def test_chat_metadata_and_interruption(self):
        metadata = decode_frame('{"type":"chat_metadata","chat_id":"c1","chat_group_id":"g1"}')
        interruption = decode_frame('{"type":"user_interruption","time":1200}')

        assert isinstance(metadata, ChatMetadataEvent)
        assert metadata.chat_id == "c1"
        assert isinstance(interruption, UserInterruptionEvent)

    def test_extra_fields_are_ignored(self):
        event = decode_frame('{"type":"user_interruption","custom_session_id":"x"}')
        assert isinstance(event, UserInterruptionEvent)

    def test_bytes_frame(self):
        event = decode_frame(USER_MESSAGE.encode("utf-8"))
        assert isinstance(event, UserMessageEvent)

    def test_unknown_type_keeps_raw_payload(self):
        raw = '{"type":"tool_call","name":"lookup","parameters":"{}"}'
        event = decode_frame(raw)

        assert isinstance(event, UnknownEvent)
        assert event.type == "tool_call"
        assert event.raw == raw

    @pytest.mark.parametrize("raw", [
        "not json",
        "[1, 2, 3]",
        '{"no_type": true}',
        '{"type":"audio_output"}',
        '{"type":"user_message","message":"not an object"}',
    ])
    def test_malformed_frames_degrade_to_unknown(self, raw):
        """Test that decoding never raises."""
        event = decode_frame(raw)

        assert isinstance(event, UnknownEvent)
        assert event.raw == raw

    def test_parse_frame_raises_on_invalid_json(self):
        with pytest.raises(DecodeError, match="invalid JSON"):
            parse_frame("{")

    def test_parse_frame_raises_on_invalid_payload(self):
        with pytest.raises(DecodeError) as excinfo:
            parse_frame('{"type":"audio_output"}')
        assert excinfo.value.raw == '{"type":"audio_output"}'
        assert not excinfo.value.is_retryable()

    @given(st.text(min_size=1).filter(lambda t: t not in EVENT_TYPES))
    def test_unrecognized_types_always_unknown(self, frame_type: str):
        """Property test: any unrecognized type yields Unknown with the verbatim payload."""
        raw = json.dumps({"type": frame_type, "payload": [1, 2]})
        event = decode_frame(raw)

        assert isinstance(event, UnknownEvent)
        assert event.raw == raw


class TestTopThree:
    """Tests for emotion score extraction."""

    def test_scenario_scores(self):
        scores = top_three({"joy": 0.9, "calm": 0.5, "anger": 0.1, "fear": 0.05})

        assert scores == [
            EmotionScore(label="joy", score=0.9),
            EmotionScore(label="calm", score=0.5),
            EmotionScore(label="anger", score=0.1),
        ]

    def test_empty_mapping(self):
        assert top_three({}) == []

    def test_ties_keep_original_order(self):
        scores = top_three({"b": 0.5, "a": 0.5, "c": 0.5, "d": 0.5})
        assert [s.label for s in scores] == ["b", "a", "c"]

    @given(st.dictionaries(
        st.text(min_size=1, max_size=12),
        st.floats(min_value=0.0, max_value=1.0, allow_nan=False),
        max_size=40,
    ))
    def test_top_three_properties(self, scores: dict[str, float]):
        """Property test: at most 3, descending, empty iff input is empty."""
        result = top_three(scores)

        assert len(result) == min(3, len(scores))
        assert (result == []) == (scores == {})
        values = [s.score for s in result]
        assert values == sorted(values, reverse=True)
        if result:
            assert result[0].score == max(scores.values())


class TestEncoders:
    """Tests for outbound frames."""

    def test_session_settings(self):
        assert json.loads(encode_session_settings()) == {
            "type": "session_settings",
            "audio": {"encoding": "linear16", "sample_rate": 48000, "channels": 1},
        }

    def test_user_input(self):
        assert json.loads(encode_user_input("hello")) == {"type": "user_input", "text": "hello"}

    def test_audio_input(self):
        assert json.loads(encode_audio_input("AAAA")) == {"type": "audio_input", "data": "AAAA"}
