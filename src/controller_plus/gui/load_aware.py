"""NiceGUI helpers that react to a controller's loading state.

These are thin consumers of `ControllerPlus`:

- `bind_loading` disables an element while a flag is busy.
- `LoadAwareView` re-renders a builder each time a flag flips.
- `guard_dismiss` wraps a back/close action with `allow_dismiss()`.

Lifecycle:
    UI elements are created in `render()` (not `__init__`) so they land in the
    current NiceGUI slot. Call `close()` (or the returned unbind callable) when
    the view goes away; controller flags outlive the page otherwise.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Generic, Optional, Type, TypeVar

from nicegui import ui

from controller_plus.core.controller import ControllerPlus
from controller_plus.core.registry import find
from controller_plus.core.utils.logging import get_logger
from controller_plus.gui.client_utils import safe_call

logger = get_logger(__name__)

TController = TypeVar("TController", bound=ControllerPlus)

LoadingBuilder = Callable[[bool], None]

# Tailwind class used to block clicks on a container while busy.
IGNORE_POINTER_CLASS = "pointer-events-none"


def _set_ignore_pointer(element: Any, ignoring: bool) -> None:
    if hasattr(element, "set_enabled"):
        element.set_enabled(not ignoring)
    elif ignoring:
        element.classes(add=IGNORE_POINTER_CLASS)
    else:
        element.classes(remove=IGNORE_POINTER_CLASS)


def bind_loading(
    element: Any,
    controller: ControllerPlus,
    *,
    tag: Optional[str] = None,
    ignore_pointer: bool = True,
    on_change: Optional[Callable[[bool], None]] = None,
) -> Callable[[], None]:
    """Keep `element` in sync with a controller's busy flag.

    The current value is applied immediately, then on every transition.

    Args:
        element: NiceGUI element (or anything with `set_enabled`/`classes`).
        controller: Controller owning the flag.
        tag: Optional tag selecting a tagged flag instead of the default one.
        ignore_pointer: Disable the element while busy.
        on_change: Extra callback receiving the new value.

    Returns:
        A zero-argument callable that removes the binding.
    """

    def _apply(is_loading: bool) -> None:
        if ignore_pointer:
            safe_call(_set_ignore_pointer, element, is_loading)
        if on_change is not None:
            on_change(is_loading)

    _apply(controller.flag(tag).value)
    return controller.subscribe_loading(_apply, tag=tag)


class LoadAwareView(Generic[TController]):
    """Container whose content is rebuilt from the controller's loading state.

    The controller is given directly, or looked up in the registry by class
    and `controller_tag`.

    Example:
        view = LoadAwareView(
            lambda busy: ui.spinner() if busy else ui.label("Done"),
            controller_cls=UploadController,
            tag="upload",
        )
        view.render()

    Attributes:
        _builder: Called with the current value inside the container.
        _tag: Flag tag, or None for the default flag.
        _ignore_pointer: Block clicks on the container while busy.
        _container: Container element (created in render()).
    """

    def __init__(
        self,
        builder: LoadingBuilder,
        *,
        controller: Optional[TController] = None,
        controller_cls: Optional[Type[TController]] = None,
        controller_tag: Optional[str] = None,
        tag: Optional[str] = None,
        ignore_pointer: bool = True,
    ) -> None:
        if controller is None:
            if controller_cls is None:
                raise ValueError("LoadAwareView needs a controller or a controller_cls")
            controller = find(controller_cls, controller_tag)
        self._controller: TController = controller
        self._builder = builder
        self._tag = tag
        self._ignore_pointer = ignore_pointer
        self._container: Optional[ui.element] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def controller(self) -> TController:
        return self._controller

    def render(self) -> None:
        """Create the container and subscribe to the flag."""
        self.close()
        self._container = ui.element("div")
        self._rebuild(self._controller.flag(self._tag).value)
        self._unsubscribe = self._controller.subscribe_loading(self._on_loading_changed, tag=self._tag)

    def close(self) -> None:
        """Stop following the flag. The container is left as is."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_loading_changed(self, is_loading: bool) -> None:
        safe_call(self._rebuild, is_loading)

    def _rebuild(self, is_loading: bool) -> None:
        container = self._container
        if container is None:
            return
        container.clear()
        if self._ignore_pointer:
            _set_ignore_pointer(container, is_loading)
        with container:
            self._builder(is_loading)


def guard_dismiss(
    controller: ControllerPlus,
    action: Callable[..., Any],
    *,
    on_blocked: Optional[Callable[[], None]] = None,
    blocked_message: Optional[str] = None,
) -> Callable[..., Any]:
    """Wrap a back/close action so it only runs when the controller allows it.

    The returned coroutine function can be passed straight to a NiceGUI
    `on_click`. It resolves to True if `action` ran.

    Args:
        controller: Controller whose `allow_dismiss()` is consulted.
        action: Sync or async callable to run when dismissal is allowed.
        on_blocked: Called instead of `action` while dismissal is blocked.
        blocked_message: If given, shown with `ui.notify` while blocked.
    """

    async def _guarded(*args: Any, **kwargs: Any) -> bool:
        if not controller.allow_dismiss():
            logger.debug(f"Dismiss blocked by {type(controller).__name__}")
            if blocked_message:
                ui.notify(blocked_message, type="warning")
            if on_blocked is not None:
                on_blocked()
            return False
        result = action(*args, **kwargs)
        if inspect.isawaitable(result):
            await result
        return True

    return _guarded
