"""
Tests for Wire Schemas

Tests for request envelopes with nested payload encoding and for the
structural classification of inbound deliveries.
"""

import base64
import json

import pytest

from src.chat_client import (
    ChatCreated,
    MessageBroadcast,
    NewChatRequest,
    NewMessageRequest,
    ProtocolError,
    UnknownDelivery,
    decode_delivery,
    decode_request,
)


# Request Tests


def test_new_chat_request_envelope():
    """Test that NewChatRequest produces a new_chat envelope."""
    request = NewChatRequest(user_ids=["U1", "U2"])

    envelope = request.to_dict()
    assert envelope["Type"] == "new_chat"

    request_type, payload = decode_request(envelope)
    assert request_type == "new_chat"
    assert payload == {"UserIDs": ["U1", "U2"]}


def test_new_chat_request_needs_two_users():
    """Test that a chat with fewer than two users is rejected."""
    with pytest.raises(ProtocolError):
        NewChatRequest(user_ids=["U1"])


def test_new_message_request_envelope():
    """Test the outer and inner encoding of a new_msg request."""
    request = NewMessageRequest(chat_id="C7", body="hi")

    envelope = request.to_dict()
    assert envelope["Type"] == "new_msg"

    request_type, payload = decode_request(envelope)
    assert request_type == "new_msg"
    assert payload == {"Msg": "hi", "Type": "add", "ChID": "C7"}


def test_new_message_payload_is_base64_of_compact_json():
    """Test that Data carries the payload JSON as base64 bytes."""
    envelope = NewMessageRequest(chat_id="C7", body="hi").to_dict()

    raw = base64.b64decode(envelope["Data"])
    assert raw == b'{"Msg":"hi","Type":"add","ChID":"C7"}'


def test_new_message_payload_keeps_utf8_text():
    """Test that non-ASCII message text is carried as UTF-8."""
    envelope = NewMessageRequest(chat_id="C7", body="Привет").to_dict()

    raw = base64.b64decode(envelope["Data"])
    assert "Привет".encode("utf-8") in raw
    assert json.loads(raw)["Msg"] == "Привет"


def test_new_message_ids_are_unique_and_not_sent():
    """Test that each message gets its own ID which stays local."""
    first = NewMessageRequest(chat_id="C7", body="a")
    second = NewMessageRequest(chat_id="C7", body="b")

    assert first.message_id != second.message_id
    assert first.message_id not in first.to_json()


def test_envelope_serializes_to_json():
    """Test that the envelope JSON has the expected keys."""
    data = json.loads(NewChatRequest(user_ids=["U1", "U2"]).to_json())
    assert set(data) == {"Type", "Data"}


def test_unencodable_payload_raises():
    """Test that an encode failure is a ProtocolError."""
    request = NewMessageRequest(chat_id="C7", body=object())
    with pytest.raises(ProtocolError):
        request.to_dict()


def test_decode_request_missing_type():
    """Test that an envelope without a type is rejected."""
    with pytest.raises(ProtocolError):
        decode_request({"Data": ""})


def test_decode_request_bad_data():
    """Test that undecodable data is rejected."""
    with pytest.raises(ProtocolError):
        decode_request({"Type": "new_msg", "Data": "not base64!"})


# Delivery Tests


def test_string_data_is_chat_created():
    """Test that a bare string is the new chat ID reply."""
    delivery = decode_delivery({"Data": "C7"})
    assert delivery == ChatCreated(chat_id="C7")


def test_object_with_ch_id_is_broadcast():
    """Test that an object with ch_id is a message broadcast."""
    delivery = decode_delivery(
        {"Data": {"ch_id": "C7", "from_id": "U3", "body": "y"}}
    )

    assert isinstance(delivery, MessageBroadcast)
    assert delivery.ch_id == "C7"
    assert delivery.from_id == "U3"
    assert delivery.body == "y"
    assert delivery.msg_id is None


def test_broadcast_keeps_optional_fields():
    """Test that msg_id and t_date are kept when present."""
    delivery = decode_delivery(
        {
            "Data": {
                "ch_id": "C7",
                "from_id": "U3",
                "body": "y",
                "msg_id": "M1",
                "t_date": "2024-03-05T09:07:00Z",
            }
        }
    )
    assert delivery.msg_id == "M1"
    assert delivery.t_date == "2024-03-05T09:07:00Z"


def test_number_data_is_unknown():
    """Test that a number is an unknown delivery, not an error."""
    delivery = decode_delivery({"Data": 42})
    assert delivery == UnknownDelivery(data=42)


def test_object_without_ch_id_is_unknown():
    """Test that an object lacking ch_id is unknown."""
    delivery = decode_delivery({"Data": {"from_id": "U3", "body": "y"}})
    assert isinstance(delivery, UnknownDelivery)


def test_non_string_ch_id_is_unknown():
    """Test that a null or numeric ch_id does not make a broadcast."""
    for ch_id in (None, 42):
        data = {"ch_id": ch_id, "from_id": "U3", "body": "y"}
        assert decode_delivery({"Data": data}) == UnknownDelivery(data=data)


def test_missing_data_is_unknown():
    """Test that a frame without Data is unknown."""
    assert decode_delivery({}) == UnknownDelivery(data=None)


def test_data_key_matches_case_insensitively():
    """Test that a lowercase data key is accepted."""
    assert decode_delivery({"data": "C7"}) == ChatCreated(chat_id="C7")


def test_non_object_frame_raises():
    """Test that a frame that is not an object is a ProtocolError."""
    with pytest.raises(ProtocolError):
        decode_delivery(["C7"])
