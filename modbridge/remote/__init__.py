"""
Remote device access for modbridge.

The mod engines depend only on ``RemoteCommandPort``; ``AdbBridge`` is the
concrete transport used by the CLI.
"""

from .port import RemoteCommandPort, RemoteCommandError, RemoteFiles
from .adb import AdbBridge

__all__ = [
    "RemoteCommandPort",
    "RemoteCommandError",
    "RemoteFiles",
    "AdbBridge",
]
