"""Shared error codes for analytics search failures.

Centralizes the codes attached to raised exceptions and to error-level
log records so reporting services can aggregate them consistently.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_FILTER_OPERATOR = "INVALID_FILTER_OPERATOR"
    INVALID_FILTER_VALUE = "INVALID_FILTER_VALUE"
    MALFORMED_FILTER = "MALFORMED_FILTER"
    BACKEND_ERROR = "BACKEND_ERROR"
    BACKEND_QUERY_FAILED = "BACKEND_QUERY_FAILED"
    BACKEND_SCROLL_FAILED = "BACKEND_SCROLL_FAILED"  # Mid-scan page request failed
    SCROLL_CLEAR_FAILED = "SCROLL_CLEAR_FAILED"  # Teardown after a finished scan


__all__ = ["ErrorCode"]
