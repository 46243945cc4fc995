"""Retry/backoff and reauthentication helpers for remote operations."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Callable
from typing import Protocol, TypeVar

from b2resilience.backoff import BackoffPolicy
from b2resilience.context import Context
from b2resilience.errors import ContextCancelled
from b2resilience.raw import ErrorHooks

T = TypeVar("T")

Waiter = Callable[[Context, float], None]

logger = py_logging.getLogger(__name__)


class ReauthHooks(ErrorHooks, Protocol):
    @property
    def generation(self) -> int: ...

    def reauthorize_account(self, ctx: Context, seen_generation: int | None = None) -> None: ...


class ResilientSession(ReauthHooks, Protocol):
    policy: BackoffPolicy
    wait: Waiter


def context_wait(ctx: Context, seconds: float) -> None:
    ctx.sleep(seconds)


def run_with_backoff(
    ctx: Context,
    hooks: ErrorHooks,
    attempt: Callable[[], T],
    *,
    policy: BackoffPolicy,
    wait: Waiter = context_wait,
) -> T:
    """Call ``attempt`` until it returns or fails with a non-transient error.

    There is no attempt limit: only the error classification and ``ctx``
    end the loop. A cancelled wait raises the context error and the failure
    that led to the wait is dropped.
    """
    backoff = policy.initial_seconds
    attempts = 0
    while True:
        attempts += 1
        try:
            return attempt()
        except Exception as exc:
            if isinstance(exc, ContextCancelled):
                raise
            if not hooks.transient(exc):
                logger.debug("Non-transient failure on attempt %s: %s", attempts, type(exc).__name__)
                raise
            override = hooks.backoff(exc)
            if override is not None:
                backoff = override
            else:
                backoff = policy.next(backoff)
            logger.warning(
                "Transient failure on attempt %s (%s); retrying in %.3fs",
                attempts,
                type(exc).__name__,
                backoff,
            )
        wait(ctx, backoff)


def run_with_reauth(ctx: Context, hooks: ReauthHooks, op: Callable[[], T]) -> T:
    """Call ``op``; on an expired credential reauthorize once and call it again.

    The credential generation is read before ``op`` runs, so a refresh made by
    another caller while ``op`` was in flight is reused instead of repeated.
    """
    seen = hooks.generation
    try:
        return op()
    except Exception as exc:
        if isinstance(exc, ContextCancelled) or not hooks.reauth(exc):
            raise
        logger.info("Credentials rejected (%s); reauthorizing", type(exc).__name__)
    hooks.reauthorize_account(ctx, seen)
    return op()


def call_resilient(ctx: Context, session: ResilientSession, op: Callable[[], T]) -> T:
    return run_with_backoff(
        ctx,
        session,
        lambda: run_with_reauth(ctx, session, op),
        policy=session.policy,
        wait=session.wait,
    )
