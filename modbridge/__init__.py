"""
modbridge - mod manager for apps on remote devices

Installs and uninstalls mods for an application running on an Android
device, talking to the device only through adb.

Example:
    >>> from modbridge import AdbBridge, ModManager, get_config
    >>> manager = ModManager(AdbBridge(), get_config())
    >>> await manager.load()
    >>> record = await manager.install("my-mod.qmod")
"""

__version__ = "1.0.0"

from .config import Config, RemoteLayout, get_config
from .remote import AdbBridge, RemoteCommandPort
from .mods import InstalledModRegistry, ModManager, ModManifest

__all__ = [
    "__version__",
    "Config",
    "RemoteLayout",
    "get_config",
    "AdbBridge",
    "RemoteCommandPort",
    "InstalledModRegistry",
    "ModManager",
    "ModManifest",
]
