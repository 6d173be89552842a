"""
Installed mod registry.

In-memory record of which mods are deployed on the device. The manifests
persisted on the device are the durable source of truth; this registry is
a cache rebuilt by discovery and updated by install/uninstall.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from .manifest import ModManifest

logger = logging.getLogger(__name__)


class RegistryEventKind(Enum):
    """Kind of registry change."""
    ADDED = "added"
    REMOVED = "removed"


@dataclass(frozen=True)
class RegistryEvent:
    """A manifest was added to or removed from the registry."""
    kind: RegistryEventKind
    manifest: ModManifest


RegistryListener = Callable[[RegistryEvent], None]


class InstalledModRegistry:
    """
    Mapping of mod id -> manifest for mods installed on the device.

    Each mutation replaces a single dict entry, so readers calling ``all()``
    see either the state before or after an operation step.

    Usage:
        registry = InstalledModRegistry()
        registry.subscribe(lambda event: print(event.kind, event.manifest.id))

        registry.register(manifest)
        for mod in registry.all():
            print(mod.id, mod.version)
    """

    def __init__(self):
        self._mods: Dict[str, ModManifest] = {}
        self._listeners: List[RegistryListener] = []

    # ==================== Queries ====================

    def get(self, mod_id: str) -> Optional[ModManifest]:
        return self._mods.get(mod_id)

    def all(self) -> List[ModManifest]:
        """Snapshot of installed manifests."""
        return list(self._mods.values())

    def ids(self) -> List[str]:
        return list(self._mods.keys())

    def contains(self, mod_id: str) -> bool:
        return mod_id in self._mods

    def __contains__(self, mod_id: object) -> bool:
        return mod_id in self._mods

    def __len__(self) -> int:
        return len(self._mods)

    def retaining_mods(self, library_path: str) -> List[str]:
        """Ids of installed mods that declare ``library_path``."""
        return [
            m.id for m in list(self._mods.values())
            if library_path in m.library_files
        ]

    def libraries_in_use(self, exclude: Optional[str] = None) -> Dict[str, List[str]]:
        """Library path -> ids of mods referencing it.

        Computed from the current contents on every call.
        """
        usage: Dict[str, List[str]] = {}
        for manifest in list(self._mods.values()):
            if manifest.id == exclude:
                continue
            for library in manifest.library_files:
                usage.setdefault(library, []).append(manifest.id)
        return usage

    # ==================== Mutation ====================

    def register(self, manifest: ModManifest) -> None:
        """Insert or replace the entry for ``manifest.id``."""
        if manifest.id in self._mods:
            logger.debug(f"Replacing registry entry for {manifest.id}")
        self._mods[manifest.id] = manifest
        self._emit(RegistryEvent(RegistryEventKind.ADDED, manifest))

    def unregister(self, mod_id: str) -> Optional[ModManifest]:
        """Remove the entry for ``mod_id``; returns the removed manifest."""
        manifest = self._mods.pop(mod_id, None)
        if manifest is not None:
            self._emit(RegistryEvent(RegistryEventKind.REMOVED, manifest))
        return manifest

    def clear(self) -> None:
        for mod_id in list(self._mods):
            self.unregister(mod_id)

    # ==================== Events ====================

    def subscribe(self, listener: RegistryListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: RegistryListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: RegistryEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Registry listener failed on {event.kind.value} {event.manifest.id}: {e}")
