"""Pytest configuration and fixtures for controller_plus tests."""

from __future__ import annotations

from typing import Generator

import pytest

from controller_plus.core import registry
from controller_plus.core.config import ControllerConfig, get_default_config, set_default_config
from controller_plus.core.controller import ControllerPlus


class SampleController(ControllerPlus):
    """Concrete controller used across tests."""

    def __init__(self, config: ControllerConfig | None = None) -> None:
        super().__init__(config=config)
        self.init_calls = 0
        self.ready_calls = 0
        self.close_calls = 0

    def on_init(self) -> None:
        self.init_calls += 1

    def on_ready(self) -> None:
        self.ready_calls += 1

    def on_close(self) -> None:
        self.close_calls += 1
        super().on_close()


@pytest.fixture(autouse=True)
def isolated_registry() -> Generator[None, None, None]:
    """Ensure every test starts and ends with an empty controller registry."""
    registry.reset()
    yield
    registry.reset()


@pytest.fixture(autouse=True)
def default_config() -> Generator[ControllerConfig, None, None]:
    """Restore the process default config after each test."""
    original = get_default_config()
    yield original
    set_default_config(original)


@pytest.fixture
def controller() -> Generator[SampleController, None, None]:
    """Create an initialized controller, disposed after the test.

    Yields:
        SampleController with default config.
    """
    ctrl = SampleController()
    ctrl.init()
    yield ctrl
    ctrl.dispose()


@pytest.fixture
def controller_cls() -> type[SampleController]:
    """The SampleController class, for tests that construct their own."""
    return SampleController
