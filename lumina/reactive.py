"""
Reactive Primitive

A Signal holds a current value and pushes every new value to its
subscribers, synchronously and in subscription order. Stores publish
their collections through signals; derived views (analytics, balances,
netting) subscribe and recompute.

There is no scheduler: publishing runs every callback before set()
returns, which is what keeps optimistic apply and rollback atomic with
respect to the rest of the program.
"""

from typing import Any, Callable, Generic, Sequence, TypeVar

import structlog


T = TypeVar("T")

logger = structlog.get_logger(__name__)


class Signal(Generic[T]):
    """Current value plus change notifications."""

    def __init__(self, initial: T):
        self._value = initial
        self._subscribers: list[Callable[[T], Any]] = []

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        """Replace the value and publish it to every subscriber."""
        self._value = value
        for callback in list(self._subscribers):
            try:
                callback(value)
            except Exception as e:
                # One broken observer must not starve the others
                logger.error(
                    "signal_subscriber_failed",
                    subscriber=getattr(callback, "__qualname__", repr(callback)),
                    error=str(e),
                )

    def subscribe(
        self,
        callback: Callable[[T], Any],
        emit_current: bool = False,
    ) -> Callable[[], None]:
        """
        Register a callback for future values.

        Args:
            callback: Called with each published value
            emit_current: Also call it once right away with the current value

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(callback)
        if emit_current:
            callback(self._value)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def clear(self) -> None:
        """Drop every subscriber."""
        self._subscribers.clear()


class DerivedSignal(Signal[T]):
    """A read-only signal recomputed from other signals."""

    def __init__(self, sources: Sequence[Signal], compute: Callable[..., T]):
        self._sources = list(sources)
        self._compute = compute
        super().__init__(self._evaluate())
        self._unsubscribers = [
            source.subscribe(self._on_source_change) for source in self._sources
        ]

    def _evaluate(self) -> T:
        return self._compute(*(source.value for source in self._sources))

    def _on_source_change(self, _value: Any) -> None:
        Signal.set(self, self._evaluate())

    def set(self, value: T) -> None:
        raise TypeError("DerivedSignal is read-only")

    def detach(self) -> None:
        """Stop following the source signals."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self.clear()


def combine(sources: Sequence[Signal], compute: Callable[..., T]) -> DerivedSignal[T]:
    """
    Derive a signal from several others.

    `compute` receives the sources' current values in order and is
    re-run whenever any of them publishes.
    """
    return DerivedSignal(sources, compute)
