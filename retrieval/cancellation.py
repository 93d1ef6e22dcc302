"""
Cooperative cancellation for retrieval calls.

Corpus size is caller-controlled, so index builds can be long. A
CancellationToken is threaded through every index and checked between
documents; expiry or an explicit cancel aborts the call.
"""

import threading
import time
from typing import Optional


class RetrievalError(Exception):
    """Base error for the retrieval core."""


class RetrievalCancelled(RetrievalError):
    """Raised when a retrieval call is cancelled or its deadline passes."""


class CancellationToken:
    """
    Cancel flag with an optional monotonic deadline.

    Usage:
        token = CancellationToken.with_timeout(2.0)
        retriever.retrieve(query, corpus, cancellation=token)

        # From another thread
        token.cancel()
    """

    def __init__(self, deadline: Optional[float] = None):
        """
        Args:
            deadline: Absolute time.monotonic() value, or None for no deadline
        """
        self.deadline = deadline
        self._event = threading.Event()

    @classmethod
    def with_timeout(cls, seconds: float) -> "CancellationToken":
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RetrievalCancelled("Retrieval cancelled")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise RetrievalCancelled("Retrieval deadline exceeded")


def check_cancelled(token: Optional[CancellationToken]) -> None:
    """No-op when no token was supplied."""
    if token is not None:
        token.raise_if_cancelled()
