"""
Review chat backend client.
Handles the HTTP contract for reading a paper chat and posting messages.
"""

from typing import Any, Dict, Optional
import requests

from config.app_config import APIConfig, get_api_config
from services.chat_service.errors import ApiTransportError
from utils.logging_config import get_logger


class ReviewChatApiClient:
    """
    Adapter for the paper review chat endpoints.

    Credentials travel as cookies: the client keeps a single requests.Session
    and every request goes through its cookie jar. No Authorization header is
    ever set.
    """

    def __init__(self, config: Optional[APIConfig] = None, session: Optional[requests.Session] = None):
        self.logger = get_logger(__name__)
        self.config = config or get_api_config()
        self.http = session or requests.Session()

    def set_auth_cookie(self, token: Optional[str]):
        """Put the auth token into the cookie jar (or drop it when None)"""
        name = self.config.auth_cookie_name
        if token:
            self.http.cookies.set(name, token)
        elif name in self.http.cookies:
            del self.http.cookies[name]

    def fetch_paper_chat(self, paper_id: str, user_id: str) -> Dict[str, Any]:
        """
        GET the chat record of a (user, paper) pair

        Returns:
            Decoded JSON body

        Raises:
            ApiTransportError: connection failure, timeout, HTTP error or non-JSON body
        """
        url = self.config.chat_url(paper_id)
        self.logger.debug(f"Fetching chat for paper {paper_id}")
        return self._request("GET", url, params={"userId": user_id})

    def post_message(self, paper_id: str, user_id: str, text: str) -> Dict[str, Any]:
        """
        POST a user message to the paper's chat

        Raises:
            ApiTransportError: connection failure, timeout, HTTP error or non-JSON body
        """
        url = self.config.message_url(paper_id)
        payload = {"userId": user_id, "text": text, "sender": "user"}
        self.logger.debug(f"Posting message to paper {paper_id} ({len(text)} chars)")
        return self._request("POST", url, json=payload)

    def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self.http.request(method, url, timeout=self.config.timeout_seconds, **kwargs)
        except requests.exceptions.Timeout as e:
            raise ApiTransportError(f"Request timed out after {self.config.timeout_seconds:g}s") from e
        except requests.exceptions.RequestException as e:
            raise ApiTransportError(str(e)) from e

        if not response.ok:
            raise ApiTransportError(
                _error_message(response) or f"Request failed with status code {response.status_code}",
                status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ApiTransportError("Invalid response from review chat service",
                                    status_code=response.status_code) from e

        if not isinstance(body, dict):
            raise ApiTransportError("Invalid response from review chat service",
                                    status_code=response.status_code)
        return body

    def close(self):
        self.http.close()


def _error_message(response: requests.Response) -> Optional[str]:
    """Server-provided `message` of an error body, if any"""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("message"), str) and body["message"]:
        return body["message"]
    return None
