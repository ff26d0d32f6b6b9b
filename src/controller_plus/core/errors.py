"""Exceptions raised by controller_plus."""

from __future__ import annotations


class ControllerPlusError(Exception):
    """Base class for controller_plus errors."""


class ControllerNotFoundError(ControllerPlusError, LookupError):
    """Raised when the registry has no controller for a class and tag."""

    def __init__(self, controller_cls: type, tag: str | None = None) -> None:
        self.controller_cls = controller_cls
        self.tag = tag
        where = f" (tag={tag!r})" if tag is not None else ""
        super().__init__(f"{controller_cls.__name__} not found{where}; call put() first")
