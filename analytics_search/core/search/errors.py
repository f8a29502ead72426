"""Exceptions raised by the analytics search module."""

from __future__ import annotations

from typing import Any, Dict, Optional

from analytics_search.core.errors import ErrorCode


class SearchError(Exception):
    """Base exception for analytics search errors."""

    code: ErrorCode = ErrorCode.BACKEND_ERROR


class InvalidFilterOperator(SearchError):
    """Raised when a filter rule uses an operator the compiler does not know."""

    code = ErrorCode.INVALID_FILTER_OPERATOR

    def __init__(self, operator: Any, rule: Dict[str, Any]):
        self.operator = operator
        self.rule = rule
        super().__init__(f"unknown filter operator: {operator!r} (rule: {rule!r})")


class InvalidFilterValue(SearchError):
    """Raised when a rule value cannot be used with its operator."""

    code = ErrorCode.INVALID_FILTER_VALUE

    def __init__(self, message: str, rule: Dict[str, Any]):
        self.rule = rule
        super().__init__(f"{message} (rule: {rule!r})")


class MalformedFilterError(SearchError):
    """Raised when a serialized rule tree cannot be decoded."""

    code = ErrorCode.MALFORMED_FILTER


class SearchBackendError(SearchError):
    """Raised by search backends when a request fails."""

    code = ErrorCode.BACKEND_ERROR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[Any] = None,
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(message)
