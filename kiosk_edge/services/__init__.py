"""
Services module for Kiosk Edge.

Provides the remote-command protocol (poller, dispatcher), session
bootstrap, connection health tracking and durable kiosk state.
"""

from .state_store import KioskStateStore, StateKey, REFRESHING, RELOAD_OVERLAY, get_state_store
from .connection_health import ConnectionMonitor
from .command_poller import CommandFetcher, CommandPoller
from .dispatcher import CommandDispatcher
from .multiview_queue import MultiviewCommandQueue
from .session import KioskSession, SessionState

__all__ = [
    'KioskStateStore',
    'StateKey',
    'REFRESHING',
    'RELOAD_OVERLAY',
    'get_state_store',
    'ConnectionMonitor',
    'CommandFetcher',
    'CommandPoller',
    'CommandDispatcher',
    'MultiviewCommandQueue',
    'KioskSession',
    'SessionState',
]
