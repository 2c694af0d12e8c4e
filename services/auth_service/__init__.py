"""
Auth service - read-only identity and page context for the chat core.
"""

from .identity_provider import IdentityProvider, SessionStateIdentityProvider, StaticIdentityProvider
from .page_context import PageContext

__all__ = [
    'IdentityProvider',
    'SessionStateIdentityProvider',
    'StaticIdentityProvider',
    'PageContext'
]
