"""
Chat service data models for review chat sessions and messages.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, StrictBool


class ChatStatus(str, Enum):
    """Review chat status, set by the server when the chat is loaded"""
    PENDING = "pending"
    COMPLETED = "completed"
    DECLINED = "declined"


class Sender(str, Enum):
    """Side of the conversation a message comes from"""
    USER = "user"
    COUNTERPART = "counterpart"

    @classmethod
    def from_wire(cls, value: Optional[str]) -> 'Sender':
        # The backend labels the reviewer side "evaluator"
        if value == "user":
            return cls.USER
        return cls.COUNTERPART


@dataclass(frozen=True)
class Message:
    """Individual chat message"""
    text: str
    sender: Sender
    timestamp: str  # ISO-8601; local clock for optimistic messages
    id: Optional[str] = None
    local_seq: Optional[int] = None

    @property
    def is_optimistic(self) -> bool:
        return self.id is None


@dataclass
class ChatSession:
    """Conversation state for one (user, paper) pair"""
    paper_id: str
    user_id: str
    status: ChatStatus
    counterpart_label: str
    counterpart_id: Optional[str] = None
    messages: List[Message] = field(default_factory=list)

    def can_send(self) -> bool:
        return self.status == ChatStatus.PENDING

    def append(self, message: Message) -> None:
        """Append a message at the end of the transcript"""
        if not message.text or not message.text.strip():
            raise ValueError("Cannot append a message with empty text")
        self.messages.append(message)

    def transcript(self) -> Tuple[Message, ...]:
        """Messages in display order (oldest first)"""
        return tuple(self.messages)


# Wire schemas for the review chat backend

class WireMessage(BaseModel):
    """Message as stored by the backend"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)

    id: Optional[str] = Field(default=None, alias="_id")
    text: str = ""
    sender: Optional[str] = None
    timestamp: str = ""

    def to_message(self) -> Message:
        return Message(
            text=self.text,
            sender=Sender.from_wire(self.sender),
            timestamp=self.timestamp,
            id=self.id
        )


class PaperChatRecord(BaseModel):
    """The paper chat document returned by the read endpoint"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)

    paper_id: Optional[str] = Field(default=None, alias="paperId")
    user_id: Optional[str] = Field(default=None, alias="userId")
    reviewer_id: Optional[str] = None
    reviewer_name: Optional[str] = None
    status: str
    messages: Optional[List[WireMessage]] = None


class PaperChatEnvelope(BaseModel):
    """Response body of the read endpoint"""
    model_config = ConfigDict(extra="ignore")

    success: StrictBool = False
    data: Optional[PaperChatRecord] = None
    message: Optional[str] = None


class SendEnvelope(BaseModel):
    """Response body of the message endpoint"""
    model_config = ConfigDict(extra="ignore")

    success: StrictBool = False
    message: Optional[str] = None
