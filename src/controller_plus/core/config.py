"""Runtime configuration for controllers.

`ControllerConfig` is a small frozen dataclass, mirroring how the event bus
takes a `BusConfig`. A process-wide default is used by controllers that are
built without an explicit config; applications can replace it at startup,
optionally from environment variables:

- CONTROLLER_PLUS_TRACE: log every flag transition and dispatch
- CONTROLLER_PLUS_REFERENCE_COUNTED: count overlapping brackets per key
- CONTROLLER_PLUS_SWALLOW_HANDLER_ERRORS: log instead of raise handler failures
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

ENV_PREFIX = "CONTROLLER_PLUS_"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _env_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    text = value.strip().lower()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    return None


@dataclass(frozen=True, slots=True)
class ControllerConfig:
    """Configuration for controller behavior.

    Attributes:
        trace: If True, log flag transitions and error dispatches at DEBUG.
        reference_counted: If True, overlapping brackets on the same key keep
            the flag busy until all of them finish. If False, the first bracket
            to finish clears the flag.
        swallow_handler_errors: If True, a failing error handler is logged and
            swallowed by `handle_error`. If False, the failure propagates.
    """

    trace: bool = False
    reference_counted: bool = True
    swallow_handler_errors: bool = True

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ControllerConfig":
        """Build a config from environment variables.

        Missing or unparseable values keep their defaults.

        Args:
            prefix: Variable name prefix.
            environ: Mapping to read from. Defaults to os.environ.
        """
        env = os.environ if environ is None else environ
        overrides = {}
        for name in ("trace", "reference_counted", "swallow_handler_errors"):
            value = _env_bool(env.get(prefix + name.upper()))
            if value is not None:
                overrides[name] = value
        return replace(cls(), **overrides)


_DEFAULT_CONFIG = ControllerConfig()


def get_default_config() -> ControllerConfig:
    """Return the process-wide default config."""
    return _DEFAULT_CONFIG


def set_default_config(config: ControllerConfig) -> None:
    """Replace the process-wide default config.

    Only affects controllers created afterwards.
    """
    global _DEFAULT_CONFIG
    _DEFAULT_CONFIG = config
