"""Tests for NiceGUI loading-state bindings (no browser client needed)."""

from __future__ import annotations

from unittest.mock import MagicMock, call, patch

import pytest

from controller_plus.core import registry
from controller_plus.gui.client_utils import safe_call
from controller_plus.gui.load_aware import (
    IGNORE_POINTER_CLASS,
    LoadAwareView,
    bind_loading,
    guard_dismiss,
)


def test_bind_loading_disables_element_while_busy(controller) -> None:
    element = MagicMock()
    changes: list[bool] = []

    unbind = bind_loading(element, controller, tag="upload", on_change=changes.append)
    controller.set_is_loading_by_tag("upload", True)
    controller.set_is_loading_by_tag("upload", False)
    unbind()
    controller.set_is_loading_by_tag("upload", True)

    assert element.set_enabled.call_args_list == [call(True), call(False), call(True)]
    assert changes == [False, True, False]


def test_bind_loading_uses_pointer_class_without_set_enabled(controller) -> None:
    element = MagicMock(spec=["classes"])

    bind_loading(element, controller)
    controller.is_loading = True

    assert element.classes.call_args_list == [
        call(remove=IGNORE_POINTER_CLASS),
        call(add=IGNORE_POINTER_CLASS),
    ]


def test_bind_loading_without_ignore_pointer(controller) -> None:
    element = MagicMock()
    bind_loading(element, controller, ignore_pointer=False)
    controller.is_loading = True
    element.set_enabled.assert_not_called()


def test_bind_loading_ignores_deleted_client(controller) -> None:
    element = MagicMock()
    element.set_enabled.side_effect = [None, RuntimeError("The client this element belongs to has been deleted.")]

    bind_loading(element, controller)
    controller.is_loading = True

    assert controller.is_loading is True


def test_safe_call_reraises_other_runtime_errors() -> None:
    def fails() -> None:
        raise RuntimeError("something else")

    with pytest.raises(RuntimeError, match="something else"):
        safe_call(fails)


def test_load_aware_view_rebuilds_on_transition(controller) -> None:
    built: list[bool] = []

    with patch("controller_plus.gui.load_aware.ui.element") as mock_element:
        container = MagicMock()
        mock_element.return_value = container

        view = LoadAwareView(built.append, controller=controller, tag="scan")
        view.render()
        controller.set_is_loading_by_tag("scan", True)
        controller.set_is_loading_by_tag("scan", False)

    assert built == [False, True, False]
    assert container.clear.call_count == 3
    assert container.set_enabled.call_args_list == [call(True), call(False), call(True)]

    view.close()
    controller.set_is_loading_by_tag("scan", True)
    assert built == [False, True, False]


def test_load_aware_view_resolves_controller_from_registry(controller_cls) -> None:
    ctrl = registry.put(controller_cls(), tag="main")

    view = LoadAwareView(lambda _: None, controller_cls=controller_cls, controller_tag="main")

    assert view.controller is ctrl


def test_load_aware_view_requires_a_controller() -> None:
    with pytest.raises(ValueError):
        LoadAwareView(lambda _: None)


@pytest.mark.asyncio
async def test_guard_dismiss_runs_action_when_idle(controller) -> None:
    action = MagicMock(return_value=None)
    guarded = guard_dismiss(controller, action)

    assert await guarded("arg") is True
    action.assert_called_once_with("arg")


@pytest.mark.asyncio
async def test_guard_dismiss_blocks_while_busy(controller) -> None:
    action = MagicMock(return_value=None)
    on_blocked = MagicMock()
    guarded = guard_dismiss(controller, action, on_blocked=on_blocked, blocked_message="Please wait")
    controller.is_loading = True

    with patch("controller_plus.gui.load_aware.ui.notify") as mock_notify:
        assert await guarded() is False

    action.assert_not_called()
    on_blocked.assert_called_once_with()
    mock_notify.assert_called_once_with("Please wait", type="warning")


@pytest.mark.asyncio
async def test_guard_dismiss_awaits_async_action(controller) -> None:
    done: list[bool] = []

    async def go_back() -> None:
        done.append(True)

    guarded = guard_dismiss(controller, go_back)
    controller.set_is_loading_by_tag("background", True)

    assert await guarded() is True
    assert done == [True]
