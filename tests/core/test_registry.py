"""Tests for the process-wide controller registry."""

from __future__ import annotations

import pytest

from controller_plus.core import registry
from controller_plus.core.errors import ControllerNotFoundError


def test_put_initializes_and_find_returns_instance(controller_cls) -> None:
    ctrl = registry.put(controller_cls())

    assert ctrl.init_calls == 1
    assert registry.find(controller_cls) is ctrl
    assert registry.is_registered(controller_cls)


def test_put_keeps_existing_unless_replace(controller_cls) -> None:
    first = registry.put(controller_cls())
    second = controller_cls()

    assert registry.put(second) is first
    assert second.initialized is False

    replaced = registry.put(second, replace=True)
    assert replaced is second
    assert first.is_closed is True
    assert registry.find(controller_cls) is second


def test_tags_keep_separate_instances(controller_cls) -> None:
    a = registry.put(controller_cls(), tag="a")
    b = registry.put(controller_cls(), tag="b")

    assert registry.find(controller_cls, "a") is a
    assert registry.find(controller_cls, "b") is b
    assert not registry.is_registered(controller_cls)


def test_find_missing_raises(controller_cls) -> None:
    with pytest.raises(ControllerNotFoundError) as excinfo:
        registry.find(controller_cls, "missing")

    assert isinstance(excinfo.value, LookupError)
    assert excinfo.value.tag == "missing"
    assert "SampleController" in str(excinfo.value)


def test_delete_disposes(controller_cls) -> None:
    ctrl = registry.put(controller_cls())

    assert registry.delete(controller_cls) is True
    assert ctrl.close_calls == 1
    assert registry.delete(controller_cls) is False


def test_reset_disposes_all(controller_cls) -> None:
    a = registry.put(controller_cls(), tag="a")
    b = registry.put(controller_cls(), tag="b")

    registry.reset()

    assert a.is_closed and b.is_closed
    assert not registry.is_registered(controller_cls, "a")
