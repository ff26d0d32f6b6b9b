"""Controller extensions: loading-state tracking and error handler dispatch."""

from controller_plus.core.config import ControllerConfig, get_default_config, set_default_config
from controller_plus.core.controller import Controller, ControllerPlus
from controller_plus.core.error_dispatcher import ErrorDispatcher, ErrorHandlerCallback
from controller_plus.core.errors import ControllerNotFoundError, ControllerPlusError
from controller_plus.core.load_tracker import LoadTracker
from controller_plus.core.observable import BusyFlag, Observable

__version__ = "0.1.0"

__all__ = [
    "BusyFlag",
    "Controller",
    "ControllerConfig",
    "ControllerNotFoundError",
    "ControllerPlus",
    "ControllerPlusError",
    "ErrorDispatcher",
    "ErrorHandlerCallback",
    "LoadTracker",
    "Observable",
    "get_default_config",
    "set_default_config",
]
