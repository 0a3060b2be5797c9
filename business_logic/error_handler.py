"""
Centralized error handling and user feedback.

Every failure of a user-initiated action is classified into an ErrorInfo,
logged, and turned into a single notification for the UI. Failed AI calls
are never retried and never partially applied.
"""

import json
import logging
from collections import Counter
from typing import Dict, Any, Optional
from enum import Enum
from dataclasses import dataclass
from datetime import datetime, timedelta
import openai

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Where a failure came from."""
    API_ERROR = "api_error"
    RESPONSE_ERROR = "response_error"
    DATA_ERROR = "data_error"
    VALIDATION_ERROR = "validation_error"
    NETWORK_ERROR = "network_error"
    SYSTEM_ERROR = "system_error"


NOTIFICATION_TYPES = {
    ErrorSeverity.INFO: "info",
    ErrorSeverity.WARNING: "warning",
    ErrorSeverity.ERROR: "error",
    ErrorSeverity.CRITICAL: "error",
}

NOTIFICATION_TITLES = {
    ErrorCategory.API_ERROR: "AI Service Error",
    ErrorCategory.RESPONSE_ERROR: "Unreadable AI Response",
    ErrorCategory.DATA_ERROR: "Data Error",
    ErrorCategory.VALIDATION_ERROR: "Input Error",
    ErrorCategory.NETWORK_ERROR: "Connection Error",
    ErrorCategory.SYSTEM_ERROR: "System Error",
}

LOG_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}

# OpenAI exception type -> (severity, log prefix, user message, suggested action)
OPENAI_ERRORS = [
    (openai.AuthenticationError, ErrorSeverity.CRITICAL, "OpenAI API authentication failed",
     "AI service authentication failed. Please check your OpenAI API key.",
     "Set OPENAI_API_KEY in Streamlit secrets or the environment."),
    (openai.RateLimitError, ErrorSeverity.WARNING, "OpenAI API rate limit hit",
     "The AI service is busy right now.",
     "Wait a moment and run the action again."),
    (openai.BadRequestError, ErrorSeverity.ERROR, "OpenAI rejected the request",
     "The AI service could not process this input.",
     "Shorten the input or remove the attachment and try again."),
]


@dataclass
class ErrorInfo:
    """Classified failure of one action."""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    user_message: str
    technical_details: Optional[str] = None
    suggested_action: Optional[str] = None
    timestamp: datetime = None
    context: str = ""

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now()


class MalformedResponseError(ValueError):
    """The AI service answered with something that is not usable JSON."""


def _build(category: ErrorCategory, severity: ErrorSeverity, summary: str, error: Exception,
           context: str, user_message: str, action: Optional[str] = None,
           with_details: bool = False) -> ErrorInfo:
    return ErrorInfo(
        category=category,
        severity=severity,
        message=f"{summary} in {context}: {error}",
        user_message=user_message,
        technical_details=str(error) if with_details else None,
        suggested_action=action,
        context=context
    )


class ErrorHandler:
    """
    Classifies exceptions and produces user-facing notifications.

    Keeps a bounded history of recent errors for the diagnostics panel.
    """

    max_history = 100

    def __init__(self):
        self.error_history = []

    def handle_openai_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """
        Classify an exception raised by the OpenAI client.

        Timeouts and connection failures are network errors; everything else
        is an API error whose severity depends on the exception type.
        """
        if isinstance(error, (openai.APITimeoutError, openai.APIConnectionError)):
            return self.handle_network_error(error, context)

        for error_type, severity, summary, user_message, action in OPENAI_ERRORS:
            if isinstance(error, error_type):
                return _build(ErrorCategory.API_ERROR, severity, summary, error, context, user_message,
                              action, with_details=severity == ErrorSeverity.ERROR)

        status_code = getattr(error, 'status_code', None)
        if status_code is not None and status_code >= 500:
            return _build(ErrorCategory.API_ERROR, ErrorSeverity.ERROR, "OpenAI API server error", error,
                          context, "The AI service encountered an internal error. Please try again.",
                          "Try again in a few minutes.")

        return _build(ErrorCategory.API_ERROR, ErrorSeverity.ERROR, "OpenAI API error", error, context,
                      "An error occurred while communicating with the AI service.",
                      "Please try again.", with_details=True)

    def handle_response_error(self, error: Exception, context: str = "") -> ErrorInfo:
        return _build(ErrorCategory.RESPONSE_ERROR, ErrorSeverity.ERROR, "Unusable AI response", error, context,
                      "The AI returned an answer that could not be read. Nothing was changed.",
                      "Give the AI more context (a clearer table or description) and try again.",
                      with_details=True)

    def handle_data_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """
        Classify a persistence failure (unwritable data directory, disk full).

        Permission problems are critical: no later save can succeed either.
        """
        if isinstance(error, PermissionError) or "permission denied" in str(error).lower():
            return _build(ErrorCategory.DATA_ERROR, ErrorSeverity.CRITICAL, "Data directory permission error",
                          error, context, "Cannot write to the data directory.",
                          "Check permissions on the DATA_DIR folder.")

        return _build(ErrorCategory.DATA_ERROR, ErrorSeverity.ERROR, "Data error", error, context,
                      "Saving or loading your data failed.",
                      "Check the data directory and try again.", with_details=True)

    def handle_network_error(self, error: Exception, context: str = "") -> ErrorInfo:
        error_str = str(error).lower()
        if isinstance(error, (openai.APITimeoutError, TimeoutError)) or "timed out" in error_str \
                or "timeout" in error_str:
            return _build(ErrorCategory.NETWORK_ERROR, ErrorSeverity.WARNING, "Network timeout", error, context,
                          "The AI service request timed out.",
                          "Check your internet connection and try again.")

        return _build(ErrorCategory.NETWORK_ERROR, ErrorSeverity.ERROR, "Network error", error, context,
                      "Cannot reach the AI service. Please check your internet connection.",
                      "Check your internet connection and firewall settings, then try again.",
                      with_details=True)

    def handle_validation_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """Invalid user input; the exception text is shown as-is."""
        return _build(ErrorCategory.VALIDATION_ERROR, ErrorSeverity.WARNING, "Validation error", error, context,
                      str(error).strip("'\""), "Please correct the input and try again.")

    def classify_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """
        Classify an error and return appropriate ErrorInfo.

        The checks run from most to least specific: ConnectionError is an
        OSError and MalformedResponseError is a ValueError.

        Args:
            error: The exception to classify
            context: The action that failed

        Returns:
            ErrorInfo object with structured error information
        """
        if isinstance(error, openai.OpenAIError):
            return self.handle_openai_error(error, context)
        if isinstance(error, (MalformedResponseError, json.JSONDecodeError)):
            return self.handle_response_error(error, context)
        if isinstance(error, (ConnectionError, TimeoutError)):
            return self.handle_network_error(error, context)
        if isinstance(error, OSError):
            return self.handle_data_error(error, context)
        if isinstance(error, (ValueError, KeyError, AttributeError)):
            return self.handle_validation_error(error, context)

        return _build(ErrorCategory.SYSTEM_ERROR, ErrorSeverity.ERROR, "Unexpected error", error, context,
                      "An unexpected error occurred. Nothing was changed.",
                      "Try again. If the problem persists, check the application logs.", with_details=True)

    def create_user_notification(self, error_info: ErrorInfo) -> Dict[str, Any]:
        """
        Build the notification dict rendered by the UI.

        Technical details are only included for critical errors.
        """
        notification = {
            'type': NOTIFICATION_TYPES[error_info.severity],
            'title': NOTIFICATION_TITLES.get(error_info.category, "Error"),
            'message': error_info.user_message,
            'timestamp': error_info.timestamp.isoformat(),
        }
        if error_info.suggested_action:
            notification['action'] = error_info.suggested_action
        if error_info.severity == ErrorSeverity.CRITICAL and error_info.technical_details:
            notification['technical_details'] = error_info.technical_details
        return notification

    def log_error(self, error_info: ErrorInfo, context: str = ""):
        """Record an error in the bounded history and log it at its severity."""
        self.error_history = (self.error_history + [error_info])[-self.max_history:]
        logger.log(LOG_LEVELS[error_info.severity], f"{context or error_info.context}: {error_info.message}")

    def get_error_statistics(self) -> Dict[str, Any]:
        """
        Summarize recorded errors.

        Returns:
            Totals plus category, severity and action breakdowns for the last 24 hours
        """
        if not self.error_history:
            return {'total_errors': 0}

        cutoff = datetime.now() - timedelta(hours=24)
        recent = [err for err in self.error_history if err.timestamp > cutoff]

        return {
            'total_errors': len(self.error_history),
            'recent_errors_24h': len(recent),
            'category_breakdown': dict(Counter(err.category.value for err in recent)),
            'severity_breakdown': dict(Counter(err.severity.value for err in recent)),
            'action_breakdown': dict(Counter(err.context for err in recent if err.context)),
        }


# Global error handler instance
error_handler = ErrorHandler()
