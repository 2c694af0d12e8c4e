"""
Message channel - the send path of a loaded chat session.

Sending is gated on the session status, the user's message is appended to
the transcript before the request goes out, and a failed request is
reported without taking the message back out of the transcript.
"""

import itertools
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from pydantic import ValidationError

from infrastructure.external.review_api_client import ReviewChatApiClient
from services.chat_service.errors import ApiTransportError, SendFailed
from services.chat_service.models import ChatSession, Message, SendEnvelope, Sender
from utils.logging_config import get_logger, log_chat_event, log_user_interaction


class SendOutcome(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    REJECTED = "rejected"


@dataclass
class SendResult:
    """What happened to one send attempt"""
    outcome: SendOutcome
    message: Optional[Message] = None
    error: Optional[SendFailed] = None
    reason: Optional[str] = None

    @property
    def appended(self) -> bool:
        return self.outcome != SendOutcome.REJECTED

    @classmethod
    def rejected(cls, reason: str) -> 'SendResult':
        return cls(outcome=SendOutcome.REJECTED, reason=reason)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MessageChannel:
    """
    Owns appends and sends for one chat session.

    Rapid successive sends are not serialized; each optimistic message gets a
    local sequence number so entries can be told apart.
    """

    def __init__(self, session: Optional[ChatSession], api_client: ReviewChatApiClient,
                 clock: Callable[[], datetime] = utc_now):
        self.logger = get_logger(__name__)
        self.session = session
        self.api_client = api_client
        self.clock = clock
        self._seq = itertools.count(1)

    def can_send(self) -> bool:
        return self.session is not None and self.session.can_send()

    def send(self, text: Optional[str], on_appended: Optional[Callable[[Message], None]] = None) -> SendResult:
        """
        Append the user's message and post it to the server

        Args:
            text: raw input; sent as typed, not trimmed
            on_appended: called right after the optimistic append, before the request

        Returns:
            SendResult: REJECTED (nothing happened), SENT or FAILED
        """
        rejection = self._rejection_reason(text)
        if rejection:
            self.logger.debug(f"Send rejected: {rejection}")
            log_user_interaction(self.logger, "send_rejected", reason=rejection)
            return SendResult.rejected(rejection)

        session = self.session
        message = Message(
            text=text,
            sender=Sender.USER,
            timestamp=self.clock().isoformat(),
            local_seq=next(self._seq)
        )
        session.append(message)
        log_chat_event(self.logger, "message_appended", session.paper_id,
                       local_seq=message.local_seq, transcript_length=len(session.messages))

        if on_appended is not None:
            on_appended(message)

        error = self._post(session, message)
        if error is not None:
            log_chat_event(self.logger, "send_failed", session.paper_id,
                           local_seq=message.local_seq, error_message=error.message)
            return SendResult(outcome=SendOutcome.FAILED, message=message, error=error)

        log_chat_event(self.logger, "message_sent", session.paper_id, local_seq=message.local_seq)
        return SendResult(outcome=SendOutcome.SENT, message=message)

    def _rejection_reason(self, text: Optional[str]) -> Optional[str]:
        if not text or not text.strip():
            return "empty input"
        if self.session is None:
            return "no session loaded"
        if not self.session.can_send():
            return f"chat is {self.session.status.value}"
        return None

    def _post(self, session: ChatSession, message: Message) -> Optional[SendFailed]:
        try:
            body = self.api_client.post_message(session.paper_id, session.user_id, message.text)
        except ApiTransportError as e:
            self.logger.warning(f"Send transport error for paper {session.paper_id}: {e.message}")
            return SendFailed(e.message)

        try:
            envelope = SendEnvelope.model_validate(body)
        except ValidationError as e:
            self.logger.warning(f"Malformed send response for paper {session.paper_id}: {e}")
            return SendFailed()

        if envelope.success is not True:
            return SendFailed()
        return None
