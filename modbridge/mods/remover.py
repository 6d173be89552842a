"""
Mod remover.

Uninstalls a mod from the device. Private mod files are always deleted;
shared libraries are deleted only when no other installed mod declares them.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from ..config import RemoteLayout
from ..remote.port import RemoteCommandError, RemoteFiles
from .errors import DeploymentError, NotInstalledError, RemovalError
from .registry import InstalledModRegistry

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


@dataclass
class RemovalReport:
    """What an uninstall did on the device."""
    mod_id: str
    removed: List[str] = field(default_factory=list)
    # library path -> ids of the mods still using it
    retained: Dict[str, List[str]] = field(default_factory=dict)
    failures: List[DeploymentError] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "mod_id": self.mod_id,
            "removed": self.removed,
            "retained": self.retained,
            "failures": [str(f) for f in self.failures],
        }


class ModRemover:
    """
    Uninstalls mods.

    Deletes are best-effort: a failed delete is recorded and the remaining
    files are still processed. Failures are raised together as a
    ``RemovalError`` once every delete has been attempted.

    Usage:
        remover = ModRemover(files, layout, registry)
        report = await remover.uninstall("my-mod", progress=print)
    """

    def __init__(self, files: RemoteFiles, layout: RemoteLayout, registry: InstalledModRegistry):
        self.files = files
        self.layout = layout
        self.registry = registry

    async def uninstall(
        self,
        mod_id: str,
        progress: Optional[ProgressCallback] = None,
    ) -> RemovalReport:
        """
        Uninstall ``mod_id``.

        Raises:
            NotInstalledError: the mod is not in the registry
            RemovalError: one or more remote deletes failed
        """
        report = progress or (lambda message: None)

        if not self.registry.contains(mod_id):
            raise NotInstalledError(mod_id)

        report(f"Uninstalling mod with ID {mod_id} . . .")
        # Unregister first so the library usage below only counts other mods
        manifest = self.registry.unregister(mod_id)
        result = RemovalReport(mod_id=mod_id)

        for mod_file in manifest.mod_files:
            report(f"Removing mod file {mod_file}")
            await self._delete(self.layout.mod_file_path(mod_file), result)

        in_use = self.registry.libraries_in_use(exclude=mod_id)
        for library_path in manifest.library_files:
            retaining = in_use.get(library_path, [])
            if retaining:
                report(f"Other mod {retaining[0]} still needs library {library_path}, not removing")
                result.retained[library_path] = retaining
                continue

            report(f"Removing library file {library_path}")
            await self._delete(self.layout.library_path(library_path), result)

        report("Removing mod manifest . . .")
        await self._delete(self.layout.manifest_path(mod_id), result)

        if result.failures:
            raise RemovalError(mod_id, result.failures, report=result)

        report(f"Uninstalled {mod_id}")
        return result

    async def _delete(self, remote_path: str, result: RemovalReport) -> None:
        try:
            await self.files.delete(remote_path)
        except RemoteCommandError as e:
            logger.error(f"Delete of {remote_path} failed: {e}")
            result.failures.append(DeploymentError(remote_path, f"delete failed: {e}", code="DELETE_FAILED"))
            return
        result.removed.append(remote_path)
