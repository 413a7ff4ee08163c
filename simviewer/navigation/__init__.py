"""Navigation state machine: views, actions, requests, and ``dispatch``."""

from .machine import START_ALL_APPS, START_DEVICES, dispatch, initial_state
from .state import AppState, NavigationFrame

__all__ = ["AppState", "NavigationFrame", "START_ALL_APPS", "START_DEVICES", "dispatch", "initial_state"]
