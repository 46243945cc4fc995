"""Error model shared by the resilience layer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum


class ErrorCode(IntEnum):
    API_ERROR = 1
    CANCELLED = 2
    DEADLINE_EXCEEDED = 3
    CONFIG_ERROR = 4
    VALIDATION_ERROR = 5


class ErrorKind(str, Enum):
    TRANSIENT = "transient"
    AUTH_EXPIRED = "auth_expired"
    PERMANENT = "permanent"
    CANCELLED = "cancelled"


@dataclass
class ResilienceError(Exception):
    message: str
    code: ErrorCode = ErrorCode.API_ERROR
    hint: str = ""

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message


@dataclass
class ContextCancelled(ResilienceError):
    """Raised when a context is cancelled while a call waits on it."""

    message: str = "context cancelled"
    code: ErrorCode = ErrorCode.CANCELLED


@dataclass
class DeadlineExceeded(ContextCancelled):
    message: str = "context deadline exceeded"
    code: ErrorCode = ErrorCode.DEADLINE_EXCEEDED
