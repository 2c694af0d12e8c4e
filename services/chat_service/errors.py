"""
Error conditions surfaced by the chat session core.
"""

from typing import Optional


class ChatError(Exception):
    """Base class for chat conditions shown to the user"""
    kind = "ChatError"
    default_message = "Unexpected chat error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(ChatError):
    """No user identity is available, the chat cannot be loaded"""
    kind = "Unauthenticated"
    default_message = "User not logged in"


class LoadFailed(ChatError):
    """The chat record could not be fetched"""
    kind = "LoadFailed"
    default_message = "Failed to fetch chat data"


class SendFailed(ChatError):
    """A message was not accepted by the server"""
    kind = "SendFailed"
    default_message = "Failed to send message"


class ApiTransportError(ChatError):
    """HTTP-level failure talking to the review chat backend"""
    kind = "NetworkError"
    default_message = "Could not reach the review chat service"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
