"""
Mod installer.

Deploys a mod archive to the device: extract, validate, push payload,
persist the manifest, then record the mod as installed.
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from ..config import RemoteLayout
from ..remote.port import RemoteCommandError, RemoteFiles
from .archive import ModArchive
from .errors import AlreadyInstalledError, DeploymentError, ManifestError, WrongTargetError
from .manifest import ModManifest
from .registry import InstalledModRegistry

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


class ModInstaller:
    """
    Installs mods from archives.

    All validation happens before the first remote write, so a rejected
    archive leaves both the device and the registry untouched. A push that
    fails part-way is not rolled back: the files pushed so far stay on the
    device and no manifest is persisted for the mod.

    Usage:
        installer = ModInstaller(files, layout, registry, archive, app_id="com.example.app")
        manifest = await installer.install(Path("mod.qmod"), progress=print)
    """

    def __init__(
        self,
        files: RemoteFiles,
        layout: RemoteLayout,
        registry: InstalledModRegistry,
        archive: ModArchive,
        app_id: str,
    ):
        self.files = files
        self.layout = layout
        self.registry = registry
        self.archive = archive
        self.app_id = app_id

    async def install(
        self,
        archive_path: Path,
        progress: Optional[ProgressCallback] = None,
    ) -> ModManifest:
        """
        Install the mod in ``archive_path``.

        Raises:
            ExtractionError: archive missing or corrupt
            ManifestError: manifest missing, invalid, or naming absent files
            WrongTargetError: mod built for another application
            AlreadyInstalledError: a mod with the same id is installed
            DeploymentError: a push to the device failed
        """
        report = progress or (lambda message: None)

        report(f"Extracting mod {Path(archive_path).name} . . .")
        try:
            self.archive.extract(archive_path)
            manifest = self.validate(report)
            await self._deploy(manifest, report)
        finally:
            self.archive.discard()

        self.registry.register(manifest)
        report(f"Installed {manifest.id}")
        return manifest

    def validate(self, report: ProgressCallback) -> ModManifest:
        """Check the extracted archive can be installed."""
        report("Loading manifest . . .")
        manifest = self.archive.read_manifest()

        if manifest.game_id != self.app_id:
            raise WrongTargetError(manifest.id, manifest.game_id, self.app_id)

        if self.registry.contains(manifest.id):
            raise AlreadyInstalledError(manifest.id)

        missing = self.archive.missing_files(manifest)
        if missing:
            raise ManifestError(
                f"declared file(s) missing from archive: {', '.join(missing)}",
                manifest.id,
            )

        return manifest

    async def _deploy(self, manifest: ModManifest, report: ProgressCallback) -> None:
        for library_path in manifest.library_files:
            report(f"Copying library file {library_path}")
            await self._push(library_path, self.layout.library_path(library_path))

        for mod_file in manifest.mod_files:
            report(f"Copying mod file {mod_file}")
            await self._push(mod_file, self.layout.mod_file_path(mod_file))

        # Persisting the manifest is what marks the mod as installed
        report("Copying manifest . . .")
        manifest_remote = self.layout.manifest_path(manifest.id)
        try:
            await self.files.push(self.archive.manifest_path, manifest_remote)
        except RemoteCommandError as e:
            raise DeploymentError(manifest_remote, f"failed to persist manifest: {e}") from e

    async def _push(self, relative_path: str, remote_path: str) -> None:
        try:
            await self.files.push(self.archive.local_path(relative_path), remote_path)
        except RemoteCommandError as e:
            logger.error(f"Push of {relative_path} failed: {e}")
            raise DeploymentError(relative_path, f"push to {remote_path} failed: {e}") from e
