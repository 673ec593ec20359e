"""
Display Module

Display plan, fullscreen lifecycle and the local display app.
"""

from .router import DisplayModeRouter, DisplayPlan, KioskNavigator
from .fullscreen import FullscreenManager, FullscreenState
from .surface import DisplaySurface

__all__ = [
    'DisplayModeRouter',
    'DisplayPlan',
    'KioskNavigator',
    'FullscreenManager',
    'FullscreenState',
    'DisplaySurface',
]
