"""
Shared fixtures for the chat service tests
"""

import pytest
from datetime import datetime, timezone
from unittest.mock import Mock

from config.app_config import ChatConfig
from infrastructure.external.review_api_client import ReviewChatApiClient
from services.auth_service.identity_provider import StaticIdentityProvider
from services.auth_service.page_context import PageContext
from services.chat_service.models import ChatSession, ChatStatus, Message, Sender


def chat_response(status="pending", messages=None, **data):
    """Body of a successful read response"""
    record = {"paperId": data.pop("paperId", "PRP01"), "userId": "u1", "status": status, **data}
    if messages is not None:
        record["messages"] = messages
    return {"success": True, "data": record}


@pytest.fixture
def api_client():
    """API client double; by default every send succeeds"""
    client = Mock(spec=ReviewChatApiClient)
    client.fetch_paper_chat.return_value = chat_response()
    client.post_message.return_value = {"success": True}
    return client


@pytest.fixture
def identity():
    return StaticIdentityProvider(user_id="u1")


@pytest.fixture
def page_context():
    return PageContext(ChatConfig(), query_params={"paperId": "PRP01"})


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def pending_session():
    return ChatSession(
        paper_id="PRP01",
        user_id="u1",
        status=ChatStatus.PENDING,
        counterpart_label="Assigned Reviewer",
        messages=[Message(text="Welcome", sender=Sender.COUNTERPART,
                          timestamp="2024-05-01T08:00:00Z", id="m1")]
    )
