"""
Delivery Decoding

Every inbound frame is ``{"Data": <any>}``. The server does not tag its
deliveries, so the kind is inferred from the shape of ``Data``:

    string                      -> ChatCreated
    object with string "ch_id"  -> MessageBroadcast
    anything else               -> UnknownDelivery (ignored by callers)
"""

from dataclasses import dataclass
from typing import Any, Union

from ..errors import ProtocolError
from .chat import ChatCreated
from .message import MessageBroadcast


@dataclass
class UnknownDelivery:
    """A delivery whose data has an unrecognized shape."""

    data: Any


Delivery = Union[ChatCreated, MessageBroadcast, UnknownDelivery]


def _envelope_data(frame: dict) -> Any:
    # Field names match case-insensitively, like the server's JSON decoder.
    if "Data" in frame:
        return frame["Data"]
    for key, value in frame.items():
        if key.lower() == "data":
            return value
    return None


def decode_delivery(frame: Any) -> Delivery:
    """
    Classify a decoded inbound frame.

    Args:
        frame: JSON value read from the connection

    Returns:
        ChatCreated, MessageBroadcast or UnknownDelivery

    Raises:
        ProtocolError: If the frame is not a JSON object
    """
    if not isinstance(frame, dict):
        raise ProtocolError(
            f"Delivery must be a JSON object, got {type(frame).__name__}"
        )

    data = _envelope_data(frame)
    if isinstance(data, str):
        return ChatCreated(chat_id=data)
    if isinstance(data, dict) and isinstance(data.get("ch_id"), str):
        return MessageBroadcast.from_dict(data)
    return UnknownDelivery(data=data)
