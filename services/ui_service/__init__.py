"""
UI service - handles user interface components and interactions.
"""

from .chat_interface import (
    ChatInterface,
    build_status_notice,
    format_message_time,
    get_chat_interface,
    status_color
)

__all__ = [
    'ChatInterface',
    'build_status_notice',
    'format_message_time',
    'get_chat_interface',
    'status_color'
]
