"""Controllers: observable units of view logic, decoupled from the view.

`Controller` provides the lifecycle (`on_init`, `on_ready`, `on_close`).
`ControllerPlus` adds two capabilities by containment:

- a `LoadTracker` for busy/idle state (default and per tag), and
- an `ErrorDispatcher` routing caught errors to handlers by exact kind.

Typical usage:

    class UploadController(ControllerPlus):
        def on_init(self) -> None:
            self.set_error_handler(ConnectionError, self._on_connection_error)

        async def upload(self, files) -> None:
            try:
                await self.wait(lambda: self._client.upload(files), tag="upload")
            except Exception as err:
                self.handle_error(err)

A view subscribes to `flag()` / `subscribe_loading()` to re-render, and calls
`allow_dismiss()` before allowing a back/close action.

Methods documented as protected (the `is_loading` setter,
`set_is_loading_by_tag`, `busy`, `wait`, `handle_error`) are meant to be
called from the controller's own logic, not from views.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, ContextManager, Hashable, List, Optional, TypeVar

from controller_plus.core.config import ControllerConfig, get_default_config
from controller_plus.core.error_dispatcher import ErrorDispatcher, ErrorHandlerCallback, KindResolver
from controller_plus.core.load_tracker import LoadTracker, Operation
from controller_plus.core.observable import BusyFlag
from controller_plus.core.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class Controller:
    """Base controller with init/ready/close lifecycle hooks.

    Subclasses override `on_init`, `on_ready` and `on_close`. Whoever owns the
    controller (usually the registry) calls `init()`, `ready()` and `dispose()`.
    """

    def __init__(self) -> None:
        self._initialized: bool = False
        self._ready: bool = False
        self._closed: bool = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(initialized={self._initialized}, closed={self._closed})"

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def is_closed(self) -> bool:
        return self._closed

    def init(self) -> None:
        """Run `on_init` once."""
        if self._initialized:
            return
        self._initialized = True
        self.on_init()

    def ready(self) -> None:
        """Run `on_ready` once, initializing first if needed."""
        self.init()
        if self._ready:
            return
        self._ready = True
        self.on_ready()

    def dispose(self) -> None:
        """Run `on_close` and release resources. Later calls do nothing."""
        if self._closed:
            logger.debug(f"{type(self).__name__} already disposed")
            return
        self._closed = True
        self.on_close()

    def on_init(self) -> None:
        """Called once after construction. Register error handlers here."""

    def on_ready(self) -> None:
        """Called once after `on_init`, when the view is shown."""

    def on_close(self) -> None:
        """Called once from `dispose()`. Always call `super().on_close()`."""


class ControllerPlus(Controller):
    """Controller with loading-state tracking and error handler dispatch.

    Args:
        config: Controller configuration. Defaults to the process default.
        kind_of: Resolves the dispatch key of a handled error. Defaults to
            `type`, i.e. exact class match.
    """

    def __init__(
        self,
        config: Optional[ControllerConfig] = None,
        kind_of: Optional[KindResolver] = None,
    ) -> None:
        super().__init__()
        self._config: ControllerConfig = config or get_default_config()
        self._load_tracker = LoadTracker(self._config, owner=type(self).__name__)
        self._error_dispatcher = ErrorDispatcher(self._config, kind_of=kind_of)

    @property
    def config(self) -> ControllerConfig:
        return self._config

    @property
    def load_tracker(self) -> LoadTracker:
        return self._load_tracker

    @property
    def error_dispatcher(self) -> ErrorDispatcher:
        return self._error_dispatcher

    # ------------------------------------------------------------------
    # Dismiss guard
    # ------------------------------------------------------------------
    def allow_dismiss(self) -> bool:
        """Return True if the view bound to this controller may be dismissed.

        Only the default flag is consulted; tagged flags never block. Override
        and combine with `super().allow_dismiss()` to add conditions:

            def allow_dismiss(self) -> bool:
                return super().allow_dismiss() and not self.has_unsaved_changes
        """
        return not self.is_loading

    # ------------------------------------------------------------------
    # Loading state
    # ------------------------------------------------------------------
    @property
    def is_loading(self) -> bool:
        """True while an untagged operation is running."""
        return self._load_tracker.is_loading

    @is_loading.setter
    def is_loading(self, value: bool) -> None:
        # protected
        self._load_tracker.is_loading = value

    def is_loading_by_tag(self, tag: str) -> bool:
        """Same as `is_loading`, for the flag identified by `tag`."""
        return self._load_tracker.is_loading_by_tag(tag)

    def set_is_loading_by_tag(self, tag: str, value: bool) -> None:
        """Protected. Set the busy flag for `tag`."""
        self._load_tracker.set_is_loading_by_tag(tag, value)

    def flag(self, tag: Optional[str] = None) -> BusyFlag:
        """Observable busy flag for `tag`, or the default flag."""
        return self._load_tracker.flag(tag)

    def subscribe_loading(self, listener: Callable[[bool], None], tag: Optional[str] = None) -> Callable[[], None]:
        """Call `listener(is_loading)` on every transition of a flag.

        Returns:
            A zero-argument callable that removes the listener.
        """
        return self.flag(tag).subscribe(listener)

    def unsubscribe_loading(self, listener: Callable[[bool], None], tag: Optional[str] = None) -> None:
        self.flag(tag).unsubscribe(listener)

    @property
    def loading_tags(self) -> List[str]:
        return self._load_tracker.tags

    def busy(self, tag: Optional[str] = None) -> ContextManager[BusyFlag]:
        """Protected. Keep a flag busy for the duration of a `with` block."""
        return self._load_tracker.busy(tag)

    async def wait(self, operation: Operation[T], tag: Optional[str] = None) -> Optional[T]:
        """Protected. Run `operation` with the default (or tagged) flag busy.

        Returns the result and re-raises any error unchanged, after the flag
        has been reset. Errors are not passed to `handle_error`.
        """
        return await self._load_tracker.wait(operation, tag=tag)

    # ------------------------------------------------------------------
    # Error handlers
    # ------------------------------------------------------------------
    def set_error_handler(self, kind: Hashable, handler: ErrorHandlerCallback[Any]) -> None:
        """Register `handler` for errors whose exact kind is `kind`.

        Call from `on_init`, or from view code holding the controller.
        """
        self._error_dispatcher.set_error_handler(kind, handler)

    def error_handler(self, kind: Hashable) -> Callable[[ErrorHandlerCallback[Any]], ErrorHandlerCallback[Any]]:
        """Decorator form of `set_error_handler`."""
        return self._error_dispatcher.error_handler(kind)

    def handle_error(self, err: Any) -> bool:
        """Protected. Pass a caught error to its handler, if one is registered."""
        return self._error_dispatcher.handle_error(err)

    async def handle_error_async(self, err: Any) -> bool:
        """Protected. Like `handle_error`, awaiting an async handler."""
        return await self._error_dispatcher.handle_error_async(err)

    def join_error_handlers(self) -> Awaitable[None]:
        """Awaitable that completes when scheduled async handlers are done."""
        return self._error_dispatcher.join()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def on_close(self) -> None:
        self._load_tracker.close()
        self._error_dispatcher.clear()
        super().on_close()
