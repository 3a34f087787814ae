"""Typed failures raised at the completion-service boundary."""

from __future__ import annotations

ERROR_KIND_EMPTY_RESPONSE = "empty_response"
ERROR_KIND_INVALID_JSON = "invalid_json"
ERROR_KIND_INVALID_SCHEMA = "invalid_schema"
ERROR_KIND_UNKNOWN = "unknown"


class CompletionError(RuntimeError):
    """Base class for completion responses the engine cannot use."""

    def __init__(self, message: str, *, error_kind: str = ERROR_KIND_UNKNOWN) -> None:
        super().__init__(message)
        self.error_kind = error_kind


class EmptyResponseError(CompletionError):
    def __init__(self, message: str = "Completion service returned empty response") -> None:
        super().__init__(message, error_kind=ERROR_KIND_EMPTY_RESPONSE)


class ResponseParseError(CompletionError):
    def __init__(self, message: str) -> None:
        super().__init__(message, error_kind=ERROR_KIND_INVALID_JSON)


class SchemaValidationError(CompletionError):
    def __init__(self, message: str) -> None:
        super().__init__(message, error_kind=ERROR_KIND_INVALID_SCHEMA)
