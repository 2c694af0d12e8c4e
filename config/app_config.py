"""
Unified Configuration System for the Review Chat client

This module provides a centralized configuration system that consolidates all application settings,
supports environment-based overrides, and provides type-safe configuration access.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List
import streamlit as st
import os
from pathlib import Path


DEFAULT_API_URL = "http://localhost:5000"


@dataclass
class APIConfig:
    """Review chat backend settings"""
    base_url: str = DEFAULT_API_URL
    timeout_seconds: float = 15.0
    auth_cookie_name: str = "authToken"

    @classmethod
    def from_secrets(cls) -> 'APIConfig':
        """Load API config from Streamlit secrets"""
        # In test environment, prefer environment variables
        if os.getenv("PYTEST_CURRENT_TEST") is not None:
            return cls._from_env()

        try:
            return cls(
                base_url=st.secrets.get("REVIEW_CHAT_API_URL", DEFAULT_API_URL),
                timeout_seconds=float(st.secrets.get("REVIEW_CHAT_API_TIMEOUT", 15.0)),
                auth_cookie_name=st.secrets.get("REVIEW_CHAT_AUTH_COOKIE", "authToken")
            )
        except Exception:
            # Fallback to environment variables if secrets not available
            return cls._from_env()

    @classmethod
    def _from_env(cls) -> 'APIConfig':
        return cls(
            base_url=os.getenv("REVIEW_CHAT_API_URL", DEFAULT_API_URL),
            timeout_seconds=float(os.getenv("REVIEW_CHAT_API_TIMEOUT", "15")),
            auth_cookie_name=os.getenv("REVIEW_CHAT_AUTH_COOKIE", "authToken")
        )

    def chat_url(self, paper_id: str) -> str:
        """URL of the paper-scoped chat resource"""
        return f"{self.base_url.rstrip('/')}/inf/api/events/paper/{paper_id}/chat"

    def message_url(self, paper_id: str) -> str:
        """URL of the paper's message sub-resource"""
        return f"{self.chat_url(paper_id)}/message"


@dataclass
class ChatConfig:
    """Chat session defaults"""
    default_paper_id: str = "PRP01"
    paper_query_param: str = "paperId"
    default_counterpart_label: str = "Assigned Reviewer"
    placeholder_counterpart_label: str = "Dr. Smith (assigned reviewer)"


@dataclass
class UIConfig:
    """User interface configuration"""
    app_title: str = "Reviewer Chat"
    page_icon: str = "💬"
    loading_message: str = "Loading chat..."
    empty_transcript_message: str = "No messages yet. Start a conversation with your reviewer."
    input_placeholder: str = "Type your message here..."
    closed_input_placeholder: str = "Chat is closed"
    time_format: str = "%H:%M"


@dataclass
class LoggingConfig:
    """Logging and monitoring configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    enable_file_logging: bool = True
    log_file: str = "logs/app.log"


@dataclass
class AppConfig:
    """Main application configuration"""
    api: APIConfig = field(default_factory=APIConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Environment settings
    environment: str = field(default_factory=lambda: os.getenv("APP_ENV", "development"))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")

    @classmethod
    def load(cls) -> 'AppConfig':
        """Load configuration with environment overrides"""
        config = cls()

        # Load API configuration from secrets/environment
        config.api = APIConfig.from_secrets()

        # Apply environment-specific overrides
        if config.environment == "production":
            config.debug = False
            config.logging.level = "WARNING"
        elif config.environment == "development":
            config.debug = True
            config.logging.level = "DEBUG"

        return config

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []

        if not self.api.base_url:
            errors.append("Review chat API URL is required")
        elif not self.api.base_url.startswith(("http://", "https://")):
            errors.append(f"Review chat API URL must be http(s): {self.api.base_url}")

        if self.api.timeout_seconds <= 0:
            errors.append("API timeout must be positive")

        if not self.chat.default_paper_id:
            errors.append("Default paper id is required")

        if self.logging.enable_file_logging:
            log_dir = Path(self.logging.log_file).parent
            if not log_dir.exists():
                log_dir.mkdir(parents=True, exist_ok=True)

        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Flatten the settings that are safe to show in debug views"""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_base_url": self.api.base_url,
            "api_timeout_seconds": self.api.timeout_seconds,
            "default_paper_id": self.chat.default_paper_id,
            "log_level": self.logging.level
        }


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        # Deferred to avoid a cycle: environments import AppConfig from here
        from config.environments import get_environment_config
        _config = get_environment_config()

        # Validate configuration
        errors = _config.validate()
        if errors:
            import warnings
            for error in errors:
                warnings.warn(f"Configuration error: {error}")

    return _config


def reload_config() -> AppConfig:
    """Reload configuration (useful for testing)"""
    global _config
    _config = None
    return get_config()


def get_api_config() -> APIConfig:
    """Get backend API configuration"""
    return get_config().api
