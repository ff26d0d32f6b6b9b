"""Exact-kind error handler registry.

Handlers are registered per error kind and looked up by the exact kind of the
value passed to `handle_error`. By default the kind is `type(err)`, so a
handler registered for `OSError` does not receive a `FileNotFoundError`, and a
handler for `FileNotFoundError` does not receive a plain `OSError`.

Values with no registered handler are ignored without logging or raising. It
is up to the code that registers handlers to cover every kind it cares about.

Typical usage inside a controller:

    def on_init(self) -> None:
        self.set_error_handler(ValueError, self._on_value_error)

    async def save(self) -> None:
        try:
            await self.wait(self._repo.save)
        except Exception as err:
            self.handle_error(err)
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, TypeVar, Union

from controller_plus.core.config import ControllerConfig, get_default_config
from controller_plus.core.utils.logging import get_logger

logger = get_logger(__name__)

TErr = TypeVar("TErr")

ErrorHandlerCallback = Callable[[TErr], Union[Awaitable[None], None]]
KindResolver = Callable[[Any], Hashable]


def _kind_name(kind: Hashable) -> str:
    return getattr(kind, "__qualname__", None) or repr(kind)


class ErrorDispatcher:
    """Registry mapping an error kind to exactly one handler.

    Attributes:
        _config: Controller configuration (trace, swallow_handler_errors).
        _kind_of: Maps a dispatched value to its registry key. Defaults to `type`.
        _handlers: Map from kind to handler.
    """

    def __init__(
        self,
        config: Optional[ControllerConfig] = None,
        kind_of: Optional[KindResolver] = None,
    ) -> None:
        self._config: ControllerConfig = config or get_default_config()
        self._kind_of: KindResolver = kind_of or type
        self._handlers: Dict[Hashable, ErrorHandlerCallback[Any]] = {}
        self._pending: set[asyncio.Future] = set()

    def set_error_handler(self, kind: Hashable, handler: ErrorHandlerCallback[Any]) -> None:
        """Register `handler` for `kind`, replacing any previous handler.

        Any hashable kind is accepted; no check is made that it is an
        exception class.
        """
        replaced = kind in self._handlers
        self._handlers[kind] = handler
        logger.debug(
            f"{'Replaced' if replaced else 'Registered'} error handler for {_kind_name(kind)}: "
            f"{getattr(handler, '__qualname__', repr(handler))}"
        )

    def error_handler(self, kind: Hashable) -> Callable[[ErrorHandlerCallback[Any]], ErrorHandlerCallback[Any]]:
        """Decorator form of `set_error_handler`.

        Example:
            @controller.error_handler(TimeoutError)
            def _on_timeout(err: TimeoutError) -> None:
                ...
        """

        def decorator(handler: ErrorHandlerCallback[Any]) -> ErrorHandlerCallback[Any]:
            self.set_error_handler(kind, handler)
            return handler

        return decorator

    def has_handler(self, kind: Hashable) -> bool:
        return kind in self._handlers

    def remove_error_handler(self, kind: Hashable) -> None:
        """Unregister the handler for `kind`. Safe to call if none is set."""
        self._handlers.pop(kind, None)

    def clear(self) -> None:
        self._handlers.clear()

    def handle_error(self, err: Any) -> bool:
        """Dispatch `err` to the handler registered for its exact kind.

        If the handler returns an awaitable, it is scheduled on the running
        event loop, or run to completion when no loop is running. Use
        `handle_error_async` to await it in place instead.

        Returns:
            True if a handler was found, False otherwise.
        """
        handler = self._lookup(err)
        if handler is None:
            return False
        try:
            result = handler(err)
        except Exception:
            if not self._config.swallow_handler_errors:
                raise
            self._log_failure(err)
            return True
        if inspect.isawaitable(result):
            self._run_awaitable(err, result)
        return True

    async def handle_error_async(self, err: Any) -> bool:
        """Like `handle_error`, but awaits an asynchronous handler."""
        handler = self._lookup(err)
        if handler is None:
            return False
        try:
            result = handler(err)
            if inspect.isawaitable(result):
                await result
        except Exception:
            if not self._config.swallow_handler_errors:
                raise
            self._log_failure(err)
        return True

    async def join(self) -> None:
        """Wait for handlers scheduled by `handle_error` to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _lookup(self, err: Any) -> Optional[ErrorHandlerCallback[Any]]:
        kind = self._kind_of(err)
        handler = self._handlers.get(kind)
        if handler is not None and self._config.trace:
            logger.debug(f"Dispatching {_kind_name(kind)} to {getattr(handler, '__qualname__', repr(handler))}")
        return handler

    def _log_failure(self, err: Any) -> None:
        logger.exception(f"Error handler for {_kind_name(self._kind_of(err))} failed")

    def _run_awaitable(self, err: Any, awaitable: Awaitable[None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:

            async def _drain() -> None:
                await awaitable

            try:
                asyncio.run(_drain())
            except Exception:
                if not self._config.swallow_handler_errors:
                    raise
                self._log_failure(err)
            return

        future = asyncio.ensure_future(awaitable)
        self._pending.add(future)

        def _done(fut: asyncio.Future) -> None:
            self._pending.discard(fut)
            if fut.cancelled():
                return
            exc = fut.exception()
            if exc is not None:
                logger.error(
                    f"Error handler for {_kind_name(self._kind_of(err))} failed",
                    exc_info=(type(exc), exc, exc.__traceback__),
                )

        future.add_done_callback(_done)
