"""
Startup discovery of installed mods.

Reads the manifests persisted on the device and rebuilds the in-memory
registry from them.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from ..config import RemoteLayout
from ..remote.port import RemoteCommandError, RemoteFiles
from .errors import DiscoveryParseError, ManifestError
from .manifest import ModManifest
from .registry import InstalledModRegistry

logger = logging.getLogger(__name__)

MANIFEST_SUFFIX = ".json"


def parse_listing(raw: str) -> List[str]:
    """
    Extract manifest filenames from raw ``ls -R`` output.

    A recursive listing echoes the listed directory as a ``<dir>:`` header,
    then its entries, then a blank line before each subdirectory block
    (``<dir>/sub:`` followed by bare names). Only the root block is read;
    adb also appends carriage returns. Only well-formed manifest filenames
    survive: no directory separators, not hidden, ending in ``.json``.
    """
    entries = []
    started = False
    for line in raw.replace("\r", "").split("\n"):
        name = line.strip()
        if not name:
            if started:
                break
            continue
        if name.endswith(":"):
            if started:
                # subdirectory block
                break
            started = True
            continue
        started = True
        if "/" in name or name.startswith(".") or not name.endswith(MANIFEST_SUFFIX):
            logger.debug(f"Ignoring listing entry {name!r}")
            continue
        entries.append(name)
    return entries


@dataclass
class DiscoveryResult:
    """Outcome of a discovery pass."""
    manifests: List[ModManifest] = field(default_factory=list)
    errors: List[DiscoveryParseError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class ModDiscovery:
    """
    Loads installed mods from the device.

    Usage:
        discovery = ModDiscovery(files, layout, registry)
        result = await discovery.load_all()
        for error in result.errors:
            print(error)
    """

    def __init__(self, files: RemoteFiles, layout: RemoteLayout, registry: InstalledModRegistry):
        self.files = files
        self.layout = layout
        self.registry = registry

    async def ensure_directories(self) -> None:
        """Create the manifest, mod and library directories if absent."""
        for directory in self.layout.directories():
            await self.files.ensure_dir(directory)

    async def list_manifests(self) -> List[str]:
        """Remote paths of all persisted manifests."""
        raw = await self.files.list_dir(self.layout.manifests_dir)
        return [f"{self.layout.manifests_dir}/{name}" for name in parse_listing(raw)]

    async def load_all(self) -> DiscoveryResult:
        """
        Read every persisted manifest and register it.

        A manifest that cannot be read or parsed is reported in the result
        and skipped, as is one whose id does not match its filename; the
        remaining manifests are still loaded.
        """
        await self.ensure_directories()

        result = DiscoveryResult()
        for path in await self.list_manifests():
            try:
                text = await self.files.read_text(path)
                manifest = ModManifest.parse(text, path)
            except (RemoteCommandError, ManifestError) as e:
                error = DiscoveryParseError(path, str(e))
                logger.warning(str(error))
                result.errors.append(error)
                continue

            # Removal deletes <id>.json, so a mismatched file would outlive its mod
            stem = path.rsplit("/", 1)[-1][:-len(MANIFEST_SUFFIX)]
            if stem != manifest.id:
                error = DiscoveryParseError(
                    path, f"declares id {manifest.id}, expected file {manifest.id}{MANIFEST_SUFFIX}"
                )
                logger.warning(str(error))
                result.errors.append(error)
                continue

            self.registry.register(manifest)
            result.manifests.append(manifest)

        logger.info(f"Discovered {len(result.manifests)} installed mod(s), {len(result.errors)} unreadable")
        return result
