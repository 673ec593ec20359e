"""
Kiosk Edge - on-device agent for a remote-controlled dashboard kiosk.
"""

__version__ = "1.0.0"
