"""
Chat interface service - renders the reviewer chat page: header, status
banner, transcript, errors and the message input.
"""

import streamlit as st
from datetime import datetime
from typing import Optional

from config.app_config import AppConfig, get_config
from services.chat_service.conversation_manager import (
    ChatSessionManager, ChatState, SessionPhase, get_chat_session_manager
)
from services.chat_service.models import ChatSession, ChatStatus, Message, Sender
from utils.logging_config import get_logger, log_user_interaction


STATUS_COLORS = {
    ChatStatus.PENDING: "orange",
    ChatStatus.COMPLETED: "green",
    ChatStatus.DECLINED: "red",
}

AVATARS = {
    Sender.USER: "🧑‍💻",
    Sender.COUNTERPART: "🧑‍🏫",
}


def format_message_time(timestamp: str, time_format: str = "%H:%M") -> str:
    """Local wall-clock time of an ISO-8601 timestamp, '' when unparseable"""
    if not timestamp:
        return ""
    try:
        moment = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return ""
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.strftime(time_format)


def status_color(status: ChatStatus) -> str:
    return STATUS_COLORS.get(status, "gray")


def build_status_notice(status: Optional[ChatStatus]) -> Optional[str]:
    """Notice shown above the input when the chat no longer accepts messages"""
    if status is None or status == ChatStatus.PENDING:
        return None
    return f"Chat is {status.value}. No new messages can be sent."


class ChatInterface:
    """
    Service for the reviewer chat page.
    Drives the chat session manager and renders its state.
    """

    def __init__(self, manager: ChatSessionManager, config: Optional[AppConfig] = None):
        self.logger = get_logger(__name__)
        self.config = config or get_config()
        self.manager = manager

    def render(self):
        """Render the whole chat column"""
        chat = self.manager.current()
        if chat is None or chat.paper_id != self.manager.page_context.get_paper_id():
            with st.spinner(self.config.ui.loading_message):
                chat = self.manager.mount()

        if chat.phase == SessionPhase.LOADING:
            st.info(self.config.ui.loading_message)
            return

        if chat.phase == SessionPhase.ERROR:
            self.render_load_error(chat)
            return

        session = chat.session
        self.render_header(session)
        self.render_transcript(session)

        if chat.error is not None:
            st.error(f"Error: {chat.error.message}")

        self.render_input(chat)

    def render_header(self, session: ChatSession):
        """Title, reviewer label and colored status"""
        st.markdown(f"### {self.config.ui.app_title}")
        st.caption(session.counterpart_label)
        color = status_color(session.status)
        st.caption(f"Status: :{color}[**{session.status.value}**]")

    def render_load_error(self, chat: ChatState):
        """Error text in place of the transcript"""
        status = chat.session.status.value if chat.session else "unknown"
        st.error(f"Error: {chat.error.message if chat.error else 'Unknown error'}")
        st.caption(f"Chat status: {status}")

    def render_transcript(self, session: ChatSession):
        """Messages in insertion order"""
        if not session.messages:
            st.caption(self.config.ui.empty_transcript_message)
            return

        for message in session.transcript():
            self.render_message(message)

    def render_message(self, message: Message):
        role = "user" if message.sender == Sender.USER else "assistant"
        with st.chat_message(role, avatar=AVATARS[message.sender]):
            st.markdown(message.text)
            sent_at = format_message_time(message.timestamp, self.config.ui.time_format)
            if sent_at:
                st.caption(sent_at)

    def render_input(self, chat: ChatState):
        """Message input, disabled unless the chat is pending"""
        can_send = self.manager.can_send()
        notice = build_status_notice(chat.session.status if chat.session else None)
        if notice:
            st.caption(notice)

        placeholder = self.config.ui.input_placeholder if can_send else self.config.ui.closed_input_placeholder
        prompt = st.chat_input(placeholder, disabled=not can_send, key="review_chat_input")
        if prompt is None:
            return

        log_user_interaction(self.logger, "message_submitted",
                             paper_id=chat.paper_id, text_length=len(prompt))
        result = self.manager.submit(prompt)
        if result.appended:
            st.rerun()


def get_chat_interface(manager: Optional[ChatSessionManager] = None) -> ChatInterface:
    """Build the chat interface for the current script run"""
    if manager is None:
        manager = get_chat_session_manager()
    return ChatInterface(manager)
