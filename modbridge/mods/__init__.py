"""
Mod lifecycle for modbridge.

Installs and uninstalls mods on a remote device, tracking which shared
libraries are still needed by other installed mods.

Key Features:
- Manifests persisted on the device survive restarts of the manager
- Shared libraries are reference counted across installed mods
- Every rejection happens before the first remote write
- Best-effort uninstall that reports every file it could not delete
"""

from .errors import (
    ModError,
    ExtractionError,
    ManifestError,
    WrongTargetError,
    AlreadyInstalledError,
    NotInstalledError,
    DeploymentError,
    RemovalError,
    DiscoveryParseError,
    BusyError,
)
from .manifest import ModManifest, parse_manifest, MANIFEST_FILENAME
from .registry import InstalledModRegistry, RegistryEvent, RegistryEventKind
from .archive import ModArchive
from .discovery import ModDiscovery, DiscoveryResult, parse_listing
from .installer import ModInstaller
from .remover import ModRemover, RemovalReport
from .manager import ModManager, OperationRecord, OperationStatus, OperationType

__all__ = [
    # Errors
    "ModError",
    "ExtractionError",
    "ManifestError",
    "WrongTargetError",
    "AlreadyInstalledError",
    "NotInstalledError",
    "DeploymentError",
    "RemovalError",
    "DiscoveryParseError",
    "BusyError",
    # Manifest
    "ModManifest",
    "parse_manifest",
    "MANIFEST_FILENAME",
    # Registry
    "InstalledModRegistry",
    "RegistryEvent",
    "RegistryEventKind",
    # Engines
    "ModArchive",
    "ModDiscovery",
    "DiscoveryResult",
    "parse_listing",
    "ModInstaller",
    "ModRemover",
    "RemovalReport",
    # Manager
    "ModManager",
    "OperationRecord",
    "OperationStatus",
    "OperationType",
]
