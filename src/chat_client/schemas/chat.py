"""
Chat Schema Definitions

Creation of a chat between users and the server's reply carrying the new
chat ID.
"""

from dataclasses import dataclass
from typing import Any, Dict, List

from ..errors import ProtocolError
from .base import BaseRequest

REQ_TYPE_NEW_CHAT = "new_chat"

MIN_CHAT_MEMBERS = 2


@dataclass
class NewChatRequest(BaseRequest):
    """
    Request to create a chat between the listed users.

    Attributes:
        user_ids: Participant IDs, the requesting user first
    """

    user_ids: List[str]

    def __post_init__(self):
        if len(self.user_ids) < MIN_CHAT_MEMBERS:
            raise ProtocolError(
                f"A chat needs at least {MIN_CHAT_MEMBERS} users, "
                f"got {len(self.user_ids)}"
            )

    @property
    def _message_type(self) -> str:
        return REQ_TYPE_NEW_CHAT

    def payload(self) -> Dict[str, Any]:
        return {"UserIDs": list(self.user_ids)}


@dataclass
class ChatCreated:
    """
    Server reply to a new chat request.

    Attributes:
        chat_id: ID of the created chat
    """

    chat_id: str
