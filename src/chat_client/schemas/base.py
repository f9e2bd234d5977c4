"""
Base Schema Classes

Requests travel in an outer envelope whose ``Data`` field carries the
request payload as JSON bytes. The server stores the field as a byte slice,
so on the wire the payload JSON appears base64 encoded:

    {"Type": "new_msg", "Data": "eyJNc2ciOiAiaGkiLCAuLi59"}

The server forwards payloads without parsing them, so this nesting must be
kept exactly.
"""

import base64
import binascii
import json
from typing import Any, Dict, Tuple

from ..errors import ProtocolError

TYPE_KEY = "Type"
DATA_KEY = "Data"


def encode_payload(payload: Dict[str, Any]) -> str:
    """
    Encode a payload as base64 of its compact UTF-8 JSON.

    Raises:
        ProtocolError: If the payload is not JSON serializable
    """
    try:
        raw = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise ProtocolError(f"Cannot encode request payload: {e}")
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_payload(data: Any) -> Any:
    """Reverse of encode_payload."""
    if not isinstance(data, str):
        raise ProtocolError("Request data must be a base64 string")
    try:
        raw = base64.b64decode(data.encode("ascii"), validate=True)
        return json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise ProtocolError(f"Cannot decode request payload: {e}")


class BaseRequest:
    """
    Base class for request schemas.

    Subclasses define ``_message_type`` and ``payload()``.
    """

    def to_dict(self) -> Dict[str, Any]:
        """
        Build the outer envelope.

        Raises:
            ProtocolError: If the type is empty or the payload cannot be
                encoded
        """
        message_type = self._message_type
        if not message_type:
            raise ProtocolError("Request type must not be empty")
        return {
            TYPE_KEY: message_type,
            DATA_KEY: encode_payload(self.payload()),
        }

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict())

    def payload(self) -> Dict[str, Any]:
        """Inner payload carried in the envelope's Data field."""
        raise NotImplementedError("Subclasses must define payload")

    @property
    def _message_type(self) -> str:
        raise NotImplementedError("Subclasses must define _message_type")


def decode_request(envelope: Any) -> Tuple[str, Any]:
    """
    Split an outbound envelope into its type and decoded payload.

    Args:
        envelope: Envelope dictionary as produced by BaseRequest.to_dict

    Returns:
        Tuple of (request type, payload)

    Raises:
        ProtocolError: If the type is missing or the data cannot be decoded
    """
    if not isinstance(envelope, dict):
        raise ProtocolError("Request envelope must be a JSON object")
    message_type = envelope.get(TYPE_KEY)
    if not isinstance(message_type, str) or not message_type:
        raise ProtocolError("Request envelope is missing its type")
    return message_type, decode_payload(envelope.get(DATA_KEY))
