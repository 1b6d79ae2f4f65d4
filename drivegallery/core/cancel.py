"""
Cooperative cancellation for long-running operations.

A CancelToken is threaded through every operation that can run for a while
(pagination loops, archive export). Cancellation only takes effect at the
next check, never preemptively.
"""


class OperationCancelled(Exception):
    """Raised at a check point after the token was cancelled."""


class CancelToken:
    """Advisory cancellation flag shared between a caller and an operation."""

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self):
        """Request cancellation. Idempotent."""
        self._cancelled = True

    def raise_if_cancelled(self):
        if self._cancelled:
            raise OperationCancelled("Operation cancelled")


def check_cancelled(token: "CancelToken | None"):
    """Raise OperationCancelled if an optional token has been cancelled."""
    if token is not None:
        token.raise_if_cancelled()
