"""Root session handle: credentials, error hooks and account-level calls."""

from __future__ import annotations

import logging as py_logging
import random
import threading
from pathlib import Path
from typing import TextIO

from b2resilience.backoff import BackoffPolicy
from b2resilience.config import ResilienceConfig, load_config
from b2resilience.context import Context
from b2resilience.errors import ContextCancelled, ErrorCode, ErrorKind, ResilienceError
from b2resilience.handles import Bucket
from b2resilience.logging import configure_from_config
from b2resilience.raw import RawRoot
from b2resilience.retry import Waiter, call_resilient, context_wait, run_with_backoff

logger = py_logging.getLogger(__name__)

_LOCK_POLL_SECONDS = 0.05


class Session:
    """Shared credential state for every handle derived from one raw client.

    ``account`` and ``key`` are stored as one tuple so a reader never sees a
    half-updated pair. Reauthorization is serialized per session unless the
    config turns that off.
    """

    def __init__(
        self,
        raw: RawRoot,
        *,
        config: ResilienceConfig | None = None,
        policy: BackoffPolicy | None = None,
        wait: Waiter | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.raw = raw
        self.config = config or ResilienceConfig()
        self.policy = policy or self.config.backoff_policy(rng)
        self.wait = wait or context_wait
        self._credentials: tuple[str, str] | None = None
        self._generation = 0
        self._reauth_lock = threading.Lock()
        self.reauth_count = 0

    @classmethod
    def from_config(
        cls,
        raw: RawRoot,
        path: str | Path | None = None,
        *,
        stream: TextIO | None = None,
        log_file: str | Path | None = None,
        wait: Waiter | None = None,
        rng: random.Random | None = None,
    ) -> Session:
        """Build a session from the TOML config and apply its log level."""
        config = load_config(path)
        configure_from_config(config, stream, log_file=log_file)
        logger.debug("Session configured initial_backoff=%.3fs", config.initial_backoff_seconds)
        return cls(raw, config=config, wait=wait, rng=rng)

    @property
    def account(self) -> str:
        return self._credentials[0] if self._credentials else ""

    @property
    def key(self) -> str:
        return self._credentials[1] if self._credentials else ""

    @property
    def authorized(self) -> bool:
        return self._credentials is not None

    def transient(self, exc: BaseException) -> bool:
        return self.raw.transient(exc)

    def reauth(self, exc: BaseException) -> bool:
        return self.raw.reauth(exc)

    def backoff(self, exc: BaseException) -> float | None:
        return self.raw.backoff(exc)

    def classify(self, exc: BaseException) -> ErrorKind:
        if isinstance(exc, ContextCancelled):
            return ErrorKind.CANCELLED
        if self.reauth(exc):
            return ErrorKind.AUTH_EXPIRED
        if self.transient(exc):
            return ErrorKind.TRANSIENT
        return ErrorKind.PERMANENT

    def authorize_account(self, ctx: Context, account: str, key: str) -> None:
        def attempt() -> None:
            self.raw.authorize_account(ctx, account, key)
            self._credentials = (account, key)
            self._generation += 1

        run_with_backoff(ctx, self, attempt, policy=self.policy, wait=self.wait)
        logger.info("Account authorized generation=%s", self._generation)

    @property
    def generation(self) -> int:
        return self._generation

    def reauthorize_account(self, ctx: Context, seen_generation: int | None = None) -> None:
        if self._credentials is None:
            raise ResilienceError(
                "Cannot reauthorize an unauthorized session.",
                code=ErrorCode.VALIDATION_ERROR,
                hint="Call authorize_account first.",
            )
        if not self.config.serialize_reauth:
            self._replay_authorize(ctx)
            return

        seen = self._generation if seen_generation is None else seen_generation
        while not self._reauth_lock.acquire(timeout=_LOCK_POLL_SECONDS):
            ctx.raise_if_done()
        try:
            if self._generation != seen:
                logger.debug("Reauthorization already done by a concurrent caller")
                return
            self._replay_authorize(ctx)
        finally:
            self._reauth_lock.release()

    def _replay_authorize(self, ctx: Context) -> None:
        account, key = self._credentials or ("", "")
        self.authorize_account(ctx, account, key)
        self.reauth_count += 1
        logger.info("Session reauthorized count=%s", self.reauth_count)

    def create_bucket(self, ctx: Context, name: str, bucket_type: str) -> Bucket:
        def op() -> Bucket:
            return Bucket(self.raw.create_bucket(ctx, name, bucket_type), self)

        bucket = call_resilient(ctx, self, op)
        logger.debug("Created bucket name=%s type=%s", name, bucket_type)
        return bucket

    def list_buckets(self, ctx: Context) -> list[Bucket]:
        def op() -> list[Bucket]:
            return [Bucket(raw_bucket, self) for raw_bucket in self.raw.list_buckets(ctx)]

        return call_resilient(ctx, self, op)
