"""
Tests for the chat session manager: mount, send gating and the error slot
"""

import pytest
from unittest.mock import Mock

from conftest import chat_response
from config.app_config import ChatConfig
from services.auth_service.identity_provider import StaticIdentityProvider
from services.auth_service.page_context import PageContext
from services.chat_service.conversation_manager import (
    STATE_KEY, ChatSessionManager, SessionPhase, build_chat_session_manager
)
from services.chat_service.errors import ApiTransportError, LoadFailed, SendFailed, Unauthenticated
from services.chat_service.message_channel import SendOutcome
from services.chat_service.models import ChatStatus, Sender


class MockSessionState(dict):
    """Stand-in for Streamlit session state"""


class TestChatSessionManager:
    """Test mount and send through the manager"""

    def setup_method(self):
        self.state = MockSessionState()
        self.api_client = Mock()
        self.api_client.fetch_paper_chat.return_value = chat_response()
        self.api_client.post_message.return_value = {"success": True}
        self.identity = StaticIdentityProvider(user_id="u1", auth_token="tok-1")
        self.query_params = {"paperId": "PRP01"}
        self.error_tracker = Mock()
        self.manager = ChatSessionManager(
            api_client_factory=lambda: self.api_client,
            identity_provider=self.identity,
            page_context=PageContext(ChatConfig(), query_params=self.query_params),
            state=self.state,
            error_tracker=self.error_tracker
        )

    def test_scenario_a_empty_pending_chat(self):
        chat = self.manager.mount()

        assert chat.phase == SessionPhase.READY
        assert chat.session.status == ChatStatus.PENDING
        assert chat.session.transcript() == ()
        assert chat.error is None
        assert self.manager.can_send() is True
        self.api_client.set_auth_cookie.assert_called_once_with("tok-1")

    def test_scenario_b_successful_send(self):
        self.manager.mount()
        self.manager.set_input("Hello")

        result = self.manager.submit()

        chat = self.manager.current()
        assert result.outcome == SendOutcome.SENT
        assert [(m.text, m.sender) for m in chat.session.transcript()] == [("Hello", Sender.USER)]
        assert chat.input_text == ""
        assert chat.error is None

    def test_scenario_c_failed_send(self):
        self.api_client.post_message.return_value = {"success": False}
        self.manager.mount()
        self.manager.set_input("Hello")

        self.manager.submit()

        chat = self.manager.current()
        assert [m.text for m in chat.session.transcript()] == ["Hello"]
        assert isinstance(chat.error, SendFailed)
        assert chat.error.kind == "SendFailed"
        assert chat.input_text == ""
        assert chat.phase == SessionPhase.READY
        assert self.manager.can_send() is True
        self.error_tracker.track_error.assert_called_once()

    def test_scenario_d_completed_chat(self):
        self.api_client.fetch_paper_chat.return_value = chat_response(
            status="completed", messages=[{"text": "Thanks", "sender": "evaluator", "timestamp": ""}]
        )
        chat = self.manager.mount()

        result = self.manager.submit("Hello")

        assert [m.text for m in chat.session.transcript()] == ["Thanks"]
        assert self.manager.can_send() is False
        assert result.outcome == SendOutcome.REJECTED
        self.api_client.post_message.assert_not_called()

    @pytest.mark.parametrize("status", ["completed", "declined"])
    def test_closed_chat_keeps_input_buffer(self, status):
        """A rejected send does not touch the buffer"""
        self.api_client.fetch_paper_chat.return_value = chat_response(status=status)
        self.manager.mount()
        self.manager.set_input("draft")

        self.manager.submit()

        assert self.manager.current().input_text == "draft"
        assert self.manager.current().session.messages == []

    def test_unauthenticated_mount(self):
        self.identity.user_id = None

        chat = self.manager.mount()

        assert chat.phase == SessionPhase.ERROR
        assert isinstance(chat.error, Unauthenticated)
        assert chat.session is None
        assert self.manager.can_send() is False
        self.api_client.fetch_paper_chat.assert_not_called()

    def test_failed_load_leaves_no_session(self):
        self.api_client.fetch_paper_chat.side_effect = ApiTransportError("Network Error")

        chat = self.manager.mount()

        assert chat.phase == SessionPhase.ERROR
        assert isinstance(chat.error, LoadFailed)
        assert chat.error.message == "Network Error"
        assert chat.session is None
        self.api_client.close.assert_called_once()

    def test_unexpected_load_error_ends_in_error_phase(self):
        cause = RuntimeError("boom")
        self.api_client.fetch_paper_chat.side_effect = cause

        chat = self.manager.mount()

        assert chat.phase == SessionPhase.ERROR
        assert isinstance(chat.error, LoadFailed)
        assert chat.error.message == "Failed to fetch chat data"
        assert chat.error.__cause__ is cause
        assert chat.session is None
        self.api_client.close.assert_called_once()
        self.error_tracker.track_error.assert_called_once()
        assert self.error_tracker.track_error.call_args[0][0] is cause

    def test_unexpected_load_error_does_not_stick_in_loading(self):
        """A rerun after the failure shows the error, not the waiting indicator"""
        self.api_client.fetch_paper_chat.side_effect = RuntimeError("boom")
        self.manager.mount()

        self.api_client.fetch_paper_chat.side_effect = None
        self.api_client.fetch_paper_chat.return_value = chat_response()
        chat = self.manager.mount()

        assert chat.phase == SessionPhase.ERROR
        assert self.api_client.fetch_paper_chat.call_count == 1

    def test_client_factory_failure(self):
        def broken_factory():
            raise RuntimeError("no client")

        self.manager.api_client_factory = broken_factory

        chat = self.manager.mount()

        assert chat.phase == SessionPhase.ERROR
        assert isinstance(chat.error, LoadFailed)
        self.api_client.close.assert_not_called()

    def test_error_phase_is_terminal(self):
        """Rerunning the page does not reload; sends stay rejected"""
        self.api_client.fetch_paper_chat.return_value = {"success": False}
        self.manager.mount()

        self.api_client.fetch_paper_chat.return_value = chat_response()
        chat = self.manager.mount()
        result = self.manager.submit("Hello")

        assert chat.phase == SessionPhase.ERROR
        assert result.outcome == SendOutcome.REJECTED
        assert self.api_client.fetch_paper_chat.call_count == 1

    def test_mount_loads_once(self):
        first = self.manager.mount()
        second = self.manager.mount()

        assert first is second
        assert self.api_client.fetch_paper_chat.call_count == 1

    def test_new_paper_is_a_fresh_mount(self):
        self.manager.mount()
        self.manager.submit("Hello")

        self.query_params["paperId"] = "PRP02"
        self.api_client.fetch_paper_chat.return_value = chat_response(paperId="PRP02")
        chat = self.manager.mount()

        assert chat.paper_id == "PRP02"
        assert chat.session.messages == []
        assert self.api_client.fetch_paper_chat.call_count == 2

    def test_reset_discards_session(self):
        self.manager.mount()

        self.manager.reset()

        assert STATE_KEY not in self.state
        assert self.manager.current() is None
        assert self.manager.submit("Hello").outcome == SendOutcome.REJECTED

    def test_submit_before_mount(self):
        result = self.manager.submit("Hello")

        assert result.outcome == SendOutcome.REJECTED
        self.api_client.post_message.assert_not_called()

    def test_input_cleared_before_request(self):
        self.manager.mount()
        buffers = []

        def post_message(paper_id, user_id, text):
            buffers.append(self.manager.current().input_text)
            return {"success": True}

        self.api_client.post_message.side_effect = post_message
        self.manager.set_input("Hello")
        self.manager.submit()

        assert buffers == [""]

    def test_input_cleared_on_transport_failure(self):
        self.api_client.post_message.side_effect = ApiTransportError("Network Error")
        self.manager.mount()
        self.manager.set_input("Hello")

        self.manager.submit()

        chat = self.manager.current()
        assert chat.input_text == ""
        assert chat.error.message == "Network Error"
        assert [m.text for m in chat.session.messages] == ["Hello"]

    def test_successful_send_clears_send_error(self):
        self.api_client.post_message.side_effect = [{"success": False}, {"success": True}]
        self.manager.mount()

        self.manager.submit("first")
        assert isinstance(self.manager.current().error, SendFailed)

        self.manager.submit("second")
        assert self.manager.current().error is None
        assert [m.text for m in self.manager.current().session.messages] == ["first", "second"]

    def test_transcript_is_loaded_then_sent(self):
        self.api_client.fetch_paper_chat.return_value = chat_response(messages=[
            {"_id": "1", "text": "Hi, I am your reviewer", "sender": "evaluator", "timestamp": ""},
            {"_id": "2", "text": "Thanks!", "sender": "user", "timestamp": ""},
        ])
        self.manager.mount()

        for text in ("Question 1", "Question 2", "Question 3"):
            self.manager.submit(text)

        texts = [m.text for m in self.manager.current().session.transcript()]
        assert texts == ["Hi, I am your reviewer", "Thanks!", "Question 1", "Question 2", "Question 3"]


class TestBuildChatSessionManager:
    """Test default wiring"""

    def test_build_uses_session_state_identity(self):
        state = MockSessionState(user_id="u7")

        manager = build_chat_session_manager(state=state)

        assert manager.state is state
        assert manager.identity_provider.get_user_id() == "u7"
        assert manager.page_context.config.default_paper_id == "PRP01"
