"""Default B2 error classification for raw clients to delegate to."""

from __future__ import annotations

import logging as py_logging
from dataclasses import dataclass

from b2resilience.errors import ErrorCode, ResilienceError

logger = py_logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 429})
REAUTH_API_CODES = frozenset({"expired_auth_token", "bad_auth_token"})


@dataclass
class B2ApiError(ResilienceError):
    """Non-2xx reply from the storage API."""

    code: ErrorCode = ErrorCode.API_ERROR
    status: int = 0
    api_code: str = ""
    retry_after: float | None = None

    def __str__(self) -> str:
        base = f"{self.message} (HTTP {self.status}"
        if self.api_code:
            base += f", {self.api_code}"
        base += ")"
        if self.hint:
            return f"{base} Hint: {self.hint}"
        return base


class ErrorClassifier:
    """Transient/reauth/backoff hooks following the B2 status-code contract.

    Network failures, request timeouts, throttling and server errors are
    retried. An expired or rejected auth token on a 401 asks for
    reauthorization. ``Retry-After`` overrides the computed backoff.
    """

    def transient(self, exc: BaseException) -> bool:
        if isinstance(exc, (ConnectionError, TimeoutError)):
            return True
        if isinstance(exc, B2ApiError):
            return exc.status in RETRYABLE_STATUS_CODES or 500 <= exc.status <= 599
        return False

    def reauth(self, exc: BaseException) -> bool:
        if not isinstance(exc, B2ApiError):
            return False
        return exc.status == 401 and exc.api_code in REAUTH_API_CODES

    def backoff(self, exc: BaseException) -> float | None:
        if isinstance(exc, B2ApiError) and exc.retry_after is not None and exc.retry_after > 0:
            logger.debug("Server requested retry after %.3fs status=%s", exc.retry_after, exc.status)
            return exc.retry_after
        return None
