"""Tests for Observable and BusyFlag."""

from __future__ import annotations

import logging

import pytest

from controller_plus.core.observable import BusyFlag, Observable


def test_busy_flag_starts_idle() -> None:
    """Test that a new BusyFlag is False."""
    flag = BusyFlag(name="f")
    assert flag.value is False
    assert flag.listener_count == 0


def test_set_notifies_only_on_change() -> None:
    """Test that listeners receive transitions, not repeated values."""
    flag = BusyFlag()
    received: list[bool] = []
    flag.subscribe(received.append)

    assert flag.set(True) is True
    assert flag.set(True) is False
    flag.value = False

    assert received == [True, False]


def test_subscribe_is_deduplicated() -> None:
    """Test that subscribing the same listener twice calls it once."""
    obs: Observable[int] = Observable(0)
    received: list[int] = []

    obs.subscribe(received.append)
    obs.subscribe(received.append)
    obs.set(1)

    assert received == [1]
    assert obs.listener_count == 1


def test_unsubscribe_via_returned_callable() -> None:
    """Test that the callable returned by subscribe removes the listener."""
    obs: Observable[str] = Observable("a")
    received: list[str] = []

    unsubscribe = obs.subscribe(received.append)
    obs.set("b")
    unsubscribe()
    obs.set("c")

    assert received == ["b"]
    # Safe to call again
    unsubscribe()
    obs.unsubscribe(received.append)


def test_failing_listener_does_not_block_others(caplog: pytest.LogCaptureFixture) -> None:
    """Test that a raising listener is logged and the next one still runs."""
    flag = BusyFlag(name="upload")
    received: list[bool] = []

    def broken(_: bool) -> None:
        raise RuntimeError("listener failed")

    flag.subscribe(broken)
    flag.subscribe(received.append)

    with caplog.at_level(logging.ERROR):
        flag.set(True)

    assert flag.value is True
    assert received == [True]
    errors = [r for r in caplog.records if r.exc_info]
    assert len(errors) == 1
    assert str(errors[0].exc_info[1]) == "listener failed"


def test_close_releases_listeners() -> None:
    """Test that close() drops listeners and marks the cell closed."""
    flag = BusyFlag()
    received: list[bool] = []
    flag.subscribe(received.append)

    flag.close()
    flag.set(True)

    assert flag.closed is True
    assert flag.listener_count == 0
    assert received == []


def test_busy_flag_coerces_to_bool() -> None:
    """Test that truthy values are stored as bool."""
    flag = BusyFlag()
    flag.set(1)  # type: ignore[arg-type]
    assert flag.value is True
