"""Busy/idle tracking for long-running controller operations.

`LoadTracker` owns one default `BusyFlag` plus any number of tagged flags that
are created lazily on first access. Tagged flags are never removed until the
tracker is closed, so a controller that uses many distinct tags keeps one flag
per tag for its whole lifetime.

Operations are bracketed with `busy()` (sync context manager) or `wait()`
(async). Both set the flag before the operation starts and reset it after the
operation finishes, whether it returned or raised.

Overlapping brackets on the same key:
    With `reference_counted=True` (default) each key keeps a counter of open
    brackets, and the flag only goes idle when the last one closes. With
    `reference_counted=False` the first bracket to close clears the flag even
    if a sibling is still running.

The tracker does not serialize, queue or cancel operations. All writes are
expected to come from the owning controller's thread / event loop.
"""

from __future__ import annotations

import inspect
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, TypeVar, Union

from controller_plus.core.config import ControllerConfig, get_default_config
from controller_plus.core.observable import BusyFlag
from controller_plus.core.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Operation = Union[Callable[[], Awaitable[T]], Callable[[], T], Awaitable[T]]

DEFAULT_FLAG_NAME = "is_loading"


class LoadTracker:
    """Default and per-tag busy flags with scoped busy brackets.

    Attributes:
        _config: Controller configuration (trace, reference counting).
        _default: Untagged busy flag.
        _tagged: Map from tag to busy flag, filled on demand.
        _in_flight: Number of open brackets per key (None is the default key).
    """

    def __init__(self, config: Optional[ControllerConfig] = None, owner: str = "") -> None:
        self._config: ControllerConfig = config or get_default_config()
        self._owner: str = owner
        self._default: BusyFlag = BusyFlag(name=self._flag_name(None))
        self._tagged: Dict[str, BusyFlag] = {}
        self._in_flight: Dict[Optional[str], int] = {}

    # ------------------------------------------------------------------
    # Flag access
    # ------------------------------------------------------------------
    @property
    def is_loading(self) -> bool:
        """Current value of the default flag."""
        return self._default.value

    @is_loading.setter
    def is_loading(self, value: bool) -> None:
        self._set(None, value)

    def is_loading_by_tag(self, tag: str) -> bool:
        """Value of the flag for `tag`, creating it (idle) if needed."""
        return self.flag(tag).value

    def set_is_loading_by_tag(self, tag: str, value: bool) -> None:
        """Set the flag for `tag`, creating it if needed."""
        self._set(tag, value)

    def flag(self, tag: Optional[str] = None) -> BusyFlag:
        """Return the flag for `tag`, or the default flag if `tag` is None.

        Tagged flags are created on first access and kept until `close()`.
        """
        if tag is None:
            return self._default
        flag = self._tagged.get(tag)
        if flag is None:
            flag = BusyFlag(name=self._flag_name(tag))
            self._tagged[tag] = flag
        return flag

    @property
    def tags(self) -> List[str]:
        """Tags that have a flag, in creation order."""
        return list(self._tagged)

    def in_flight(self, tag: Optional[str] = None) -> int:
        """Number of brackets currently open for `tag` (or the default key)."""
        return self._in_flight.get(tag, 0)

    # ------------------------------------------------------------------
    # Brackets
    # ------------------------------------------------------------------
    @contextmanager
    def busy(self, tag: Optional[str] = None) -> Iterator[BusyFlag]:
        """Mark `tag` (or the default flag) busy for the duration of the block.

        Example:
            with tracker.busy("upload"):
                upload_files()
        """
        self._enter(tag)
        try:
            yield self.flag(tag)
        finally:
            self._exit(tag)

    async def wait(self, operation: Operation[T], tag: Optional[str] = None) -> Optional[T]:
        """Run `operation` while its flag is busy and return its result.

        `operation` may be an awaitable, or a zero-argument callable returning
        an awaitable (or a plain value). The callable is invoked inside the
        bracket, so a synchronous raise still resets the flag.

        Errors raised by the operation propagate unchanged after the flag is
        reset. Nothing is dispatched to error handlers here.

        Args:
            operation: Awaitable or callable to run.
            tag: Optional tag selecting a tagged flag.

        Returns:
            The operation's result.
        """
        with self.busy(tag):
            result: Any = operation() if callable(operation) else operation
            if inspect.isawaitable(result):
                result = await result
            return result

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def close(self) -> None:
        """Release listeners of the default flag and every tagged flag."""
        self._default.close()
        for flag in self._tagged.values():
            flag.close()
        self._tagged.clear()
        self._in_flight.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _flag_name(self, tag: Optional[str]) -> str:
        name = DEFAULT_FLAG_NAME if tag is None else f"{DEFAULT_FLAG_NAME}[{tag!r}]"
        return f"{self._owner}.{name}" if self._owner else name

    def _set(self, tag: Optional[str], value: bool) -> None:
        flag = self.flag(tag)
        changed = flag.set(value)
        if changed and self._config.trace:
            logger.debug(f"{flag.name} -> {flag.value}")

    def _enter(self, tag: Optional[str]) -> None:
        self._in_flight[tag] = self._in_flight.get(tag, 0) + 1
        self._set(tag, True)

    def _exit(self, tag: Optional[str]) -> None:
        remaining = max(self._in_flight.get(tag, 0) - 1, 0)
        if remaining:
            self._in_flight[tag] = remaining
        else:
            self._in_flight.pop(tag, None)
        if remaining == 0 or not self._config.reference_counted:
            self._set(tag, False)
        elif self._config.trace:
            logger.debug(f"{self._flag_name(tag)} still busy ({remaining} in flight)")
