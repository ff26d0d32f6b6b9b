"""Process-wide controller registry.

Views usually do not construct controllers themselves. Application code puts a
controller once, and views find it by class and optional tag:

    put(UploadController())
    ...
    controller = find(UploadController)

`put` runs the controller's `init()`; `delete` and `reset` dispose it.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple, Type, TypeVar

from controller_plus.core.controller import Controller
from controller_plus.core.errors import ControllerNotFoundError
from controller_plus.core.utils.logging import get_logger

logger = get_logger(__name__)

TController = TypeVar("TController", bound=Controller)

_Key = Tuple[Type[Controller], Optional[str]]

# Key: (controller class, tag), Value: controller instance
_CONTROLLERS: Dict[_Key, Controller] = {}


def put(controller: TController, tag: Optional[str] = None, *, replace: bool = False) -> TController:
    """Register `controller` under its class and `tag` and initialize it.

    If a controller is already registered for the key, the existing instance
    is returned unless `replace` is True, in which case the old one is
    disposed first.

    Args:
        controller: Controller instance to register.
        tag: Optional tag to keep several instances of the same class.
        replace: Dispose and replace an existing registration.

    Returns:
        The registered controller.
    """
    key: _Key = (type(controller), tag)
    existing = _CONTROLLERS.get(key)
    if existing is not None and existing is not controller:
        if not replace:
            logger.debug(f"{key[0].__name__} (tag={tag!r}) already registered, keeping existing")
            return existing  # type: ignore[return-value]
        delete(key[0], tag)

    _CONTROLLERS[key] = controller
    controller.init()
    logger.debug(f"Registered {key[0].__name__} (tag={tag!r})")
    return controller


def find(controller_cls: Type[TController], tag: Optional[str] = None) -> TController:
    """Return the controller registered for `controller_cls` and `tag`.

    Raises:
        ControllerNotFoundError: If nothing is registered for the key.
    """
    try:
        return _CONTROLLERS[(controller_cls, tag)]  # type: ignore[return-value]
    except KeyError:
        raise ControllerNotFoundError(controller_cls, tag) from None


def is_registered(controller_cls: Type[Controller], tag: Optional[str] = None) -> bool:
    return (controller_cls, tag) in _CONTROLLERS


def delete(controller_cls: Type[Controller], tag: Optional[str] = None) -> bool:
    """Remove and dispose the controller for the key.

    Returns:
        True if a controller was removed.
    """
    controller = _CONTROLLERS.pop((controller_cls, tag), None)
    if controller is None:
        return False
    controller.dispose()
    logger.debug(f"Deleted {controller_cls.__name__} (tag={tag!r})")
    return True


def reset() -> None:
    """Dispose and remove every registered controller."""
    controllers = list(_CONTROLLERS.values())
    _CONTROLLERS.clear()
    for controller in controllers:
        try:
            controller.dispose()
        except Exception:
            logger.exception(f"Failed to dispose {type(controller).__name__}")
    logger.debug(f"Reset registry ({len(controllers)} controllers)")
