"""Cooperative cancellation tokens.

A CancellationSource owns a token and cancels it; everything else only
observes the token. Tokens can be combined so that one walk reacts to its
own failure and to the caller's cancellation alike.
"""

from typing import Any, Callable, List, Optional

from ..errors import OperationCancelledError


Unsubscribe = Callable[[], None]


class CancellationToken:
    """Observable cancellation flag."""

    def __init__(self):
        self._cancelled = False
        self._reason: Optional[Any] = None
        self._callbacks: List[Callable[[Any], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> Optional[Any]:
        return self._reason

    def subscribe(self, callback: Callable[[Any], None]) -> Unsubscribe:
        """Call ``callback(reason)`` once when the token is cancelled.

        If the token is already cancelled the callback runs immediately.

        Returns:
            Function removing the subscription
        """
        if self._cancelled:
            callback(self._reason)
            return lambda: None

        self._callbacks.append(callback)

        def unsubscribe():
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

        return unsubscribe

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelledError if the token is cancelled."""
        if self._cancelled:
            raise self.error()

    def error(self) -> OperationCancelledError:
        """Build the error describing this cancellation."""
        if isinstance(self._reason, OperationCancelledError):
            return self._reason
        return OperationCancelledError(self._reason)

    def _cancel(self, reason: Optional[Any]) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(reason)

    def __repr__(self) -> str:
        state = f"cancelled, reason={self._reason!r}" if self._cancelled else "active"
        return f"CancellationToken({state})"


class CancellationSource:
    """Owner of a CancellationToken."""

    def __init__(self, *linked_tokens: Optional[CancellationToken]):
        """Create a source, optionally linked to other tokens.

        Args:
            *linked_tokens: Tokens whose cancellation also cancels this one
        """
        self.token = CancellationToken()
        self._unsubscribes: List[Unsubscribe] = []
        for linked in linked_tokens:
            if linked is not None:
                self._unsubscribes.append(linked.subscribe(self.cancel))

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    def cancel(self, reason: Optional[Any] = None) -> None:
        """Cancel the token. Later calls have no effect."""
        self.token._cancel(reason)
        self.close()

    def close(self) -> None:
        """Detach from linked tokens without cancelling."""
        unsubscribes, self._unsubscribes = self._unsubscribes, []
        for unsubscribe in unsubscribes:
            unsubscribe()

    def __enter__(self) -> 'CancellationSource':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def combine_tokens(*tokens: Optional[CancellationToken]) -> CancellationToken:
    """Combine tokens into one cancelled when any of them is.

    ``None`` entries are ignored. A single token is returned unchanged.
    """
    present = [token for token in tokens if token is not None]
    if len(present) == 1:
        return present[0]
    return CancellationSource(*present).token
