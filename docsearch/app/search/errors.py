from __future__ import annotations

from enum import Enum

REQUEST_TIMEOUT_STATUS = 408


class ErrorClass(str, Enum):
    NONE = "none"
    TIMEOUT = "timeout"
    OTHER = "other"


def classify_error(error: object | None) -> ErrorClass:
    if error is None:
        return ErrorClass.NONE
    if getattr(error, "status", None) == REQUEST_TIMEOUT_STATUS:
        return ErrorClass.TIMEOUT
    return ErrorClass.OTHER


def error_message(error: object) -> str:
    message = getattr(error, "message", None)
    if isinstance(message, str) and message.strip():
        return message
    return str(error)
