"""
Identity provider - read-only access to the user identity established by the
login flow. The chat core only ever reads from it.
"""

from typing import Any, Mapping, MutableMapping, Optional

from utils.logging_config import get_logger


USER_ID_KEY = "user_id"
AUTH_TOKEN_KEY = "auth_token"
USER_ID_COOKIE = "userId"


class IdentityProvider:
    """Synchronous accessor for the current user's identity"""

    def get_user_id(self) -> Optional[str]:
        raise NotImplementedError

    def get_auth_token(self) -> Optional[str]:
        return None


class StaticIdentityProvider(IdentityProvider):
    """Fixed identity, for tests and local runs against a dev backend"""

    def __init__(self, user_id: Optional[str] = None, auth_token: Optional[str] = None):
        self.user_id = user_id
        self.auth_token = auth_token

    def get_user_id(self) -> Optional[str]:
        return self.user_id or None

    def get_auth_token(self) -> Optional[str]:
        return self.auth_token or None


class SessionStateIdentityProvider(IdentityProvider):
    """
    Identity stored in Streamlit session state by the login flow.

    Looks up, in order:
    - `user_id` / `auth_token` keys set directly in session state
    - the `user_session` dict written by the auth pages
    - the browser cookies (`userId` and the configured auth cookie)
    """

    def __init__(self, state: Optional[MutableMapping[str, Any]] = None,
                 cookies: Optional[Mapping[str, str]] = None,
                 auth_cookie_name: str = "authToken"):
        self.logger = get_logger(__name__)
        self._state = state
        self._cookies = cookies
        self.auth_cookie_name = auth_cookie_name

    @property
    def state(self) -> MutableMapping[str, Any]:
        if self._state is None:
            import streamlit as st
            return st.session_state
        return self._state

    @property
    def cookies(self) -> Mapping[str, str]:
        if self._cookies is None:
            return _browser_cookies()
        return self._cookies

    def get_user_id(self) -> Optional[str]:
        user_id = self._lookup(USER_ID_KEY) or self.cookies.get(USER_ID_COOKIE)
        return user_id or None

    def get_auth_token(self) -> Optional[str]:
        token = self._lookup(AUTH_TOKEN_KEY) or self.cookies.get(self.auth_cookie_name)
        return token or None

    def _lookup(self, key: str) -> Optional[str]:
        value = self.state.get(key)
        if value:
            return str(value)

        user_session = self.state.get("user_session")
        if isinstance(user_session, dict) and user_session.get(key):
            return str(user_session[key])
        return None


def _browser_cookies() -> Mapping[str, str]:
    """Cookies sent by the browser with the current Streamlit request"""
    try:
        import streamlit as st
        return st.context.cookies
    except Exception as e:
        # Outside a Streamlit run there is no request context
        get_logger(__name__).debug(f"Browser cookies unavailable: {e}")
        return {}
