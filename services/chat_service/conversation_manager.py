"""
Chat session manager - holds the per-mount chat state and sequences the
session loader and the message channel.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, MutableMapping, Optional

from config.app_config import AppConfig, get_config
from infrastructure.external.review_api_client import ReviewChatApiClient
from services.auth_service.identity_provider import IdentityProvider, SessionStateIdentityProvider
from services.auth_service.page_context import PageContext
from services.chat_service.errors import ChatError, LoadFailed, SendFailed
from services.chat_service.message_channel import MessageChannel, SendResult
from services.chat_service.models import ChatSession
from services.chat_service.session_loader import SessionLoader
from utils.logging_config import ErrorTracker, get_error_tracker, get_logger


STATE_KEY = "review_chat"


class SessionPhase(str, Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass
class ChatState:
    """Everything the page needs for one mounted chat"""
    paper_id: str
    phase: SessionPhase = SessionPhase.LOADING
    session: Optional[ChatSession] = None
    error: Optional[ChatError] = None
    input_text: str = ""
    channel: Optional[MessageChannel] = field(default=None, repr=False)


class ChatSessionManager:
    """
    Service for managing the chat session of the current page.

    State machine:
    loading -> ready(status) on a successful load, loading -> error otherwise.
    Only ready(pending) accepts sends; sending never changes the phase. Leaving
    the error phase takes a fresh mount.
    """

    def __init__(self, api_client_factory: Callable[[], ReviewChatApiClient],
                 identity_provider: IdentityProvider, page_context: PageContext,
                 state: Optional[MutableMapping[str, Any]] = None,
                 error_tracker: Optional[ErrorTracker] = None):
        self.logger = get_logger(__name__)
        self.api_client_factory = api_client_factory
        self.identity_provider = identity_provider
        self.page_context = page_context
        self._state = state
        self._error_tracker = error_tracker

    @property
    def state(self) -> MutableMapping[str, Any]:
        if self._state is None:
            import streamlit as st
            return st.session_state
        return self._state

    @property
    def error_tracker(self) -> ErrorTracker:
        if self._error_tracker is None:
            self._error_tracker = get_error_tracker()
        return self._error_tracker

    def current(self) -> Optional[ChatState]:
        return self.state.get(STATE_KEY)

    def mount(self) -> ChatState:
        """
        Load the chat for the page's paper, once per mount

        Re-running the page keeps the mounted chat; a different paper id
        starts a fresh mount.
        """
        paper_id = self.page_context.get_paper_id()
        chat = self.current()
        if chat is not None:
            if chat.paper_id == paper_id:
                return chat
            self.reset()

        chat = ChatState(paper_id=paper_id)
        self.state[STATE_KEY] = chat
        self.logger.info(f"Mounting chat for paper {paper_id}")

        api_client = None
        try:
            api_client = self.api_client_factory()
            api_client.set_auth_cookie(self.identity_provider.get_auth_token())
            session = SessionLoader(api_client, self.identity_provider, self.page_context).load()
        except ChatError as e:
            return self._fail_mount(chat, api_client, e, e)
        except Exception as e:
            # Anything unexpected still ends the mount in the error phase
            error = LoadFailed()
            error.__cause__ = e
            return self._fail_mount(chat, api_client, error, e)

        chat.session = session
        chat.channel = MessageChannel(session, api_client)
        chat.phase = SessionPhase.READY
        return chat

    def _fail_mount(self, chat: ChatState, api_client, error: ChatError, cause: Exception) -> ChatState:
        if api_client is not None:
            api_client.close()
        chat.phase = SessionPhase.ERROR
        chat.error = error
        self.error_tracker.track_error(cause, "chat_load", paper_id=chat.paper_id, condition=error.kind)
        return chat

    def reset(self):
        """Drop the mounted chat (navigation away)"""
        chat = self.state.get(STATE_KEY)
        if chat is not None:
            if chat.channel is not None:
                chat.channel.api_client.close()
            del self.state[STATE_KEY]
            self.logger.info(f"Unmounted chat for paper {chat.paper_id}")

    def can_send(self) -> bool:
        chat = self.current()
        return (
            chat is not None
            and chat.phase == SessionPhase.READY
            and chat.channel is not None
            and chat.channel.can_send()
        )

    def set_input(self, text: str):
        """
        Fill the input buffer for a later submit() without text

        The Streamlit page does not use it: st.chat_input keeps its own draft,
        clears it on submit and hands the text straight to submit().
        """
        chat = self.current()
        if chat is not None:
            chat.input_text = text

    def submit(self, text: Optional[str] = None) -> SendResult:
        """
        Send the given text, or the input buffer when no text is given

        The input buffer is cleared right after the optimistic append, before
        the request resolves, whatever the outcome.
        """
        chat = self.current()
        if chat is None or chat.phase != SessionPhase.READY or chat.channel is None:
            return SendResult.rejected("chat not ready")

        if text is None:
            text = chat.input_text

        def clear_input(_message):
            chat.input_text = ""

        result = chat.channel.send(text, on_appended=clear_input)

        if result.error is not None:
            chat.error = result.error
            self.error_tracker.track_error(result.error, "chat_send", paper_id=chat.paper_id)
        elif result.appended and isinstance(chat.error, SendFailed):
            chat.error = None

        return result


def build_chat_session_manager(config: Optional[AppConfig] = None,
                               state: Optional[MutableMapping[str, Any]] = None) -> ChatSessionManager:
    """Wire the manager to the configured backend and the Streamlit identity"""
    config = config or get_config()
    return ChatSessionManager(
        api_client_factory=lambda: ReviewChatApiClient(config.api),
        identity_provider=SessionStateIdentityProvider(state=state,
                                                       auth_cookie_name=config.api.auth_cookie_name),
        page_context=PageContext(config.chat),
        state=state
    )


# Global manager instance; its state resolves per browser session
_chat_session_manager: Optional[ChatSessionManager] = None


def get_chat_session_manager() -> ChatSessionManager:
    """Get the global chat session manager instance"""
    global _chat_session_manager
    if _chat_session_manager is None:
        _chat_session_manager = build_chat_session_manager()
    return _chat_session_manager
