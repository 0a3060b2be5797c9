"""
Unit tests for error classification and notifications.
"""

import json
import unittest

import httpx
import openai

from business_logic.error_handler import (
    ErrorCategory, ErrorHandler, ErrorInfo, ErrorSeverity, MalformedResponseError
)


def openai_status_error(error_cls, status_code):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(status_code, request=request)
    return error_cls("failed", response=response, body=None)


class TestErrorHandler(unittest.TestCase):
    """Test cases for ErrorHandler."""

    def setUp(self):
        self.handler = ErrorHandler()

    def test_authentication_error_is_critical(self):
        info = self.handler.classify_error(openai_status_error(openai.AuthenticationError, 401), "estimate")
        self.assertEqual(info.category, ErrorCategory.API_ERROR)
        self.assertEqual(info.severity, ErrorSeverity.CRITICAL)
        self.assertIn("API key", info.user_message)

    def test_rate_limit_is_warning(self):
        info = self.handler.classify_error(openai_status_error(openai.RateLimitError, 429), "estimate")
        self.assertEqual(info.severity, ErrorSeverity.WARNING)

    def test_server_error(self):
        info = self.handler.classify_error(openai_status_error(openai.InternalServerError, 503), "estimate")
        self.assertEqual(info.category, ErrorCategory.API_ERROR)
        self.assertIn("internal error", info.user_message)

    def test_timeout_is_network_error(self):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        info = self.handler.classify_error(openai.APITimeoutError(request=request), "invoice analysis")
        self.assertEqual(info.category, ErrorCategory.NETWORK_ERROR)
        self.assertIn("timed out", info.user_message)

    def test_malformed_response(self):
        info = self.handler.classify_error(MalformedResponseError("not JSON"), "work log analysis")
        self.assertEqual(info.category, ErrorCategory.RESPONSE_ERROR)

        decode_error = json.JSONDecodeError("Expecting value", "oops", 0)
        self.assertEqual(self.handler.classify_error(decode_error).category, ErrorCategory.RESPONSE_ERROR)

    def test_os_errors_are_data_errors(self):
        info = self.handler.classify_error(PermissionError("Permission denied"), "save")
        self.assertEqual(info.category, ErrorCategory.DATA_ERROR)
        self.assertEqual(info.severity, ErrorSeverity.CRITICAL)

        info = self.handler.classify_error(OSError("No space left on device"), "save")
        self.assertEqual(info.severity, ErrorSeverity.ERROR)

    def test_connection_error_beats_os_error(self):
        info = self.handler.classify_error(ConnectionError("reset"), "estimate")
        self.assertEqual(info.category, ErrorCategory.NETWORK_ERROR)

    def test_validation_error_shows_message(self):
        info = self.handler.classify_error(ValueError("Service name is required"), "add rate")
        self.assertEqual(info.category, ErrorCategory.VALIDATION_ERROR)
        self.assertEqual(info.user_message, "Service name is required")

    def test_unknown_errors_are_system_errors(self):
        info = self.handler.classify_error(RuntimeError("boom"), "estimate")
        self.assertEqual(info.category, ErrorCategory.SYSTEM_ERROR)

    def test_notification(self):
        info = ErrorInfo(
            category=ErrorCategory.DATA_ERROR,
            severity=ErrorSeverity.CRITICAL,
            message="disk",
            user_message="Cannot write to the data directory.",
            technical_details="EACCES",
            suggested_action="Check permissions"
        )
        notification = self.handler.create_user_notification(info)

        self.assertEqual(notification['type'], 'error')
        self.assertEqual(notification['title'], 'Data Error')
        self.assertEqual(notification['action'], 'Check permissions')
        self.assertEqual(notification['technical_details'], 'EACCES')

    def test_statistics(self):
        self.assertEqual(self.handler.get_error_statistics(), {'total_errors': 0})

        self.handler.log_error(self.handler.classify_error(ValueError("bad"), "x"))
        self.handler.log_error(self.handler.classify_error(MalformedResponseError("bad"), "y"))

        stats = self.handler.get_error_statistics()
        self.assertEqual(stats['total_errors'], 2)
        self.assertEqual(stats['category_breakdown']['validation_error'], 1)
        self.assertEqual(stats['category_breakdown']['response_error'], 1)
        self.assertEqual(stats['action_breakdown'], {'x': 1, 'y': 1})

    def test_key_error_message_is_unquoted(self):
        info = self.handler.classify_error(KeyError("Insight i9 not found"), "approve")
        self.assertEqual(info.user_message, "Insight i9 not found")

    def test_history_is_bounded(self):
        for _ in range(ErrorHandler.max_history + 5):
            self.handler.log_error(self.handler.classify_error(ValueError("bad"), "x"))
        self.assertEqual(len(self.handler.error_history), ErrorHandler.max_history)


if __name__ == '__main__':
    unittest.main()
