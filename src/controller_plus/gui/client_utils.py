"""Utilities for calling into NiceGUI elements whose client may be gone."""

from __future__ import annotations

from typing import Any, Callable

from controller_plus.core.utils.logging import get_logger

logger = get_logger(__name__)


def safe_call(func: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    """Call `func`, ignoring "client deleted" errors.

    Flag listeners may fire after the browser tab that rendered an element has
    been closed. NiceGUI raises RuntimeError in that case; any other
    RuntimeError is logged and re-raised.
    """
    try:
        func(*args, **kwargs)
    except RuntimeError as e:
        if "deleted" not in str(e).lower():
            logger.error(f"safe_call caught RuntimeError in {getattr(func, '__name__', func)}: {e}")
            raise
