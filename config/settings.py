"""
Configuration management for the Agency Rate Desk application.

Values come from Streamlit secrets when a secrets.toml exists, otherwise from
the environment (a local .env is loaded first). Only the OpenAI key is
required, and only for building the AI client.
"""

import os
import streamlit as st
from typing import Any, Callable, Optional, Tuple
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

SUPPORTED_UPLOAD_TYPES: Tuple[str, ...] = ('png', 'jpg', 'jpeg', 'webp', 'pdf')


@dataclass
class AppConfig:
    openai_api_key: str
    openai_model: str = "gpt-4o"
    openai_vision_model: str = "gpt-4o"
    data_dir: str = ".agency_data"
    default_currency: str = "INR"
    ai_timeout_seconds: float = 60.0
    max_upload_mb: int = 10


class ConfigManager:
    """
    Reads and caches the application configuration.

    Settings that the app needs before an API key is available (data
    directory, default currency, upload limits) can be read without calling
    load_config().
    """

    def __init__(self):
        self._config: Optional[AppConfig] = None

    def load_config(self) -> AppConfig:
        """
        Build the configuration once and cache it.

        Raises:
            ValueError: If no OpenAI API key is configured
        """
        if self._config is None:
            api_key = self._lookup("OPENAI_API_KEY")
            if not api_key:
                raise ValueError(
                    "OpenAI API key not found. Set OPENAI_API_KEY in Streamlit secrets or the environment."
                )

            defaults = AppConfig(openai_api_key=api_key)
            self._config = AppConfig(
                openai_api_key=api_key,
                openai_model=self._setting("OPENAI_MODEL", defaults.openai_model),
                openai_vision_model=self._setting("OPENAI_VISION_MODEL", defaults.openai_vision_model),
                data_dir=self._setting("DATA_DIR", defaults.data_dir),
                default_currency=self._setting("DEFAULT_CURRENCY", defaults.default_currency),
                ai_timeout_seconds=self._setting("AI_TIMEOUT_SECONDS", defaults.ai_timeout_seconds, float),
                max_upload_mb=self._setting("MAX_UPLOAD_MB", defaults.max_upload_mb, int)
            )
        return self._config

    def _lookup(self, key: str) -> Optional[str]:
        # st.secrets raises when no secrets.toml exists
        try:
            if key in st.secrets:
                return str(st.secrets[key])
        except Exception:
            pass
        return os.getenv(key)

    def _setting(self, key: str, default: Any, cast: Callable[[str], Any] = str) -> Any:
        """Typed setting; unparseable values fall back to the default."""
        value = self._lookup(key)
        if value is None:
            return default
        try:
            return cast(value)
        except ValueError:
            return default

    def _cached_or_setting(self, attribute: str, key: str, default: Any, cast: Callable[[str], Any] = str) -> Any:
        if self._config is not None:
            return getattr(self._config, attribute)
        return self._setting(key, default, cast)

    def get_data_dir(self) -> str:
        """Directory holding the persisted collections."""
        return self._cached_or_setting('data_dir', "DATA_DIR", ".agency_data")

    def get_default_currency(self) -> str:
        return self._cached_or_setting('default_currency', "DEFAULT_CURRENCY", "INR")

    def get_max_upload_bytes(self) -> int:
        return self._cached_or_setting('max_upload_mb', "MAX_UPLOAD_MB", 10, int) * 1024 * 1024

    @staticmethod
    def is_supported_upload(filename: str) -> bool:
        """Check an attachment's extension against the supported types."""
        extension = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
        return extension in SUPPORTED_UPLOAD_TYPES


# Global configuration manager instance
config_manager = ConfigManager()
