"""
Session loader - fetches the review chat for the current (user, paper) pair
and builds the initial ChatSession.
"""

from typing import Optional

from pydantic import ValidationError

from config.app_config import ChatConfig
from infrastructure.external.review_api_client import ReviewChatApiClient
from services.auth_service.identity_provider import IdentityProvider
from services.auth_service.page_context import PageContext
from services.chat_service.errors import ApiTransportError, LoadFailed, Unauthenticated
from services.chat_service.models import ChatSession, ChatStatus, PaperChatEnvelope
from utils.logging_config import get_logger, log_chat_event, log_execution_time


class SessionLoader:
    """
    Loads a chat session once per mount.

    No retries: a failed load is reported and the user reloads the page.
    """

    def __init__(self, api_client: ReviewChatApiClient, identity_provider: IdentityProvider,
                 page_context: PageContext, config: Optional[ChatConfig] = None):
        self.logger = get_logger(__name__)
        self.api_client = api_client
        self.identity_provider = identity_provider
        self.page_context = page_context
        self.config = config or page_context.config

    def load(self) -> ChatSession:
        """
        Fetch the chat record and build the session

        Returns:
            ChatSession: freshly loaded session

        Raises:
            Unauthenticated: no user id is available (no request is made)
            LoadFailed: transport error, unsuccessful or malformed response
        """
        user_id = self.identity_provider.get_user_id()
        if not user_id:
            self.logger.warning("Chat load skipped: user not logged in")
            raise Unauthenticated()

        paper_id = self.page_context.get_paper_id()

        try:
            with log_execution_time(self.logger, "chat_load", paper_id=paper_id):
                body = self.api_client.fetch_paper_chat(paper_id, user_id)
        except ApiTransportError as e:
            raise LoadFailed(e.message) from e

        session = self._build_session(body, paper_id, user_id)
        log_chat_event(self.logger, "loaded", paper_id,
                       status=session.status.value, message_count=len(session.messages))
        return session

    def _build_session(self, body: dict, paper_id: str, user_id: str) -> ChatSession:
        try:
            envelope = PaperChatEnvelope.model_validate(body)
        except ValidationError as e:
            self.logger.warning(f"Malformed chat response for paper {paper_id}: {e}")
            raise LoadFailed() from e

        if not envelope.success or envelope.data is None:
            raise LoadFailed()

        record = envelope.data
        try:
            status = ChatStatus(record.status)
        except ValueError as e:
            self.logger.warning(f"Unknown chat status '{record.status}' for paper {paper_id}")
            raise LoadFailed() from e

        messages = [wire.to_message() for wire in (record.messages or [])]

        return ChatSession(
            paper_id=record.paper_id or paper_id,
            user_id=user_id,
            status=status,
            counterpart_id=record.reviewer_id,
            counterpart_label=self._counterpart_label(record.reviewer_id, record.reviewer_name),
            messages=messages
        )

    def _counterpart_label(self, reviewer_id: Optional[str], reviewer_name: Optional[str]) -> str:
        if not reviewer_id:
            return self.config.default_counterpart_label
        return reviewer_name or self.config.placeholder_counterpart_label
