"""Cancellable call context with optional deadline."""

from __future__ import annotations

import logging as py_logging
import threading
import time
import weakref
from collections.abc import Callable

from b2resilience.errors import ContextCancelled, DeadlineExceeded

logger = py_logging.getLogger(__name__)


class Context:
    """Cooperative cancellation scope passed to every resilient call.

    A context is done once it is cancelled, once its deadline passes, or once
    its parent is done. Children derived with ``with_cancel`` and
    ``with_timeout`` are cancelled together with their parent.
    """

    def __init__(
        self,
        *,
        parent: Context | None = None,
        deadline: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._parent = parent
        self._clock = clock
        self._done = threading.Event()
        self._lock = threading.Lock()
        self._children: weakref.WeakSet[Context] = weakref.WeakSet()
        self._cancelled = False
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline = deadline
        if parent is not None:
            parent._adopt(self)

    @classmethod
    def background(cls) -> Context:
        return cls()

    def with_cancel(self) -> Context:
        return Context(parent=self, clock=self._clock)

    def with_timeout(self, seconds: float) -> Context:
        return Context(parent=self, deadline=self._clock() + seconds, clock=self._clock)

    def _adopt(self, child: Context) -> None:
        with self._lock:
            already_done = self._done.is_set()
            if not already_done:
                self._children.add(child)
        if already_done:
            child.cancel()

    def cancel(self) -> None:
        with self._lock:
            if self._done.is_set():
                return
            self._cancelled = True
            self._done.set()
            children = list(self._children)
            self._children = weakref.WeakSet()
        for child in children:
            child.cancel()

    def remaining(self) -> float | None:
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - self._clock())

    def err(self) -> ContextCancelled | None:
        if self._cancelled:
            return ContextCancelled()
        if self._parent is not None:
            parent_err = self._parent.err()
            if parent_err is not None:
                return parent_err
        if self.deadline is not None and self._clock() >= self.deadline:
            return DeadlineExceeded()
        return None

    @property
    def done(self) -> bool:
        return self.err() is not None

    def raise_if_done(self) -> None:
        error = self.err()
        if error is not None:
            raise error

    def sleep(self, seconds: float) -> None:
        """Wait for ``seconds`` unless the context finishes first.

        Raises the cancellation error when the context is done after the
        wait, even if the timer also elapsed.
        """
        self.raise_if_done()
        timeout = max(0.0, seconds)
        bounded_by_deadline = False
        remaining = self.remaining()
        if remaining is not None and remaining <= timeout:
            timeout = remaining
            bounded_by_deadline = True
        self._done.wait(timeout)
        error = self.err()
        if error is None and bounded_by_deadline:
            error = DeadlineExceeded()
        if error is not None:
            logger.debug("Wait interrupted after up to %.3fs: %s", timeout, error.message)
            raise error
