# src/controller_plus/gui/__init__.py
"""NiceGUI bindings for ControllerPlus loading state."""

from controller_plus.gui.load_aware import LoadAwareView, bind_loading, guard_dismiss

__all__ = [
    "LoadAwareView",
    "bind_loading",
    "guard_dismiss",
]
