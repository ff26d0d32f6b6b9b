"""Observable value holders with a callback registry.

An `Observable` keeps one value and a list of listeners. Setting a different
value calls every listener synchronously, in subscription order, with the new
value. A listener that raises is logged and skipped; the remaining listeners
still receive the value.

`BusyFlag` is the boolean specialisation used for busy/idle state.
"""

from __future__ import annotations

from typing import Callable, Generic, List, TypeVar

from controller_plus.core.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Listener = Callable[[T], None]


class Observable(Generic[T]):
    """A mutable value cell that notifies listeners on change.

    Attributes:
        _value: Current value.
        _listeners: Registered callbacks, de-duplicated.
        _name: Label used in log messages.
    """

    def __init__(self, value: T, name: str = "") -> None:
        self._value: T = value
        self._listeners: List[Listener[T]] = []
        self._name: str = name
        self._closed: bool = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, value={self._value!r})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        self.set(new_value)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def set(self, new_value: T) -> bool:
        """Store `new_value` and notify listeners if it differs.

        Returns:
            True if the value changed (and listeners were notified).
        """
        if new_value == self._value:
            return False
        self._value = new_value
        self._notify(new_value)
        return True

    def subscribe(self, listener: Listener[T]) -> Callable[[], None]:
        """Register a listener called with each new value.

        Subscribing the same listener twice has no effect.

        Returns:
            A zero-argument callable that unsubscribes the listener.
        """
        if listener not in self._listeners:
            self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Listener[T]) -> None:
        """Remove a listener. Safe to call if it was never subscribed."""
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def clear(self) -> None:
        """Drop all listeners. The value is kept."""
        self._listeners.clear()

    def close(self) -> None:
        """Release all listeners and mark the cell closed."""
        self.clear()
        self._closed = True

    def _notify(self, value: T) -> None:
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                name = getattr(listener, "__qualname__", repr(listener))
                logger.exception(f"Listener {name} failed for {self._name or 'observable'}={value!r}")


class BusyFlag(Observable[bool]):
    """Boolean observable for busy/idle state. Starts idle."""

    def __init__(self, name: str = "", value: bool = False) -> None:
        super().__init__(bool(value), name=name)

    def set(self, new_value: bool) -> bool:
        return super().set(bool(new_value))

