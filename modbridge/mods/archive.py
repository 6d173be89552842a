"""
Mod archive extraction.

Archives are unpacked into a single reusable scratch directory so their
files can be pushed to the device one by one.
"""

import logging
import shutil
import zipfile
from pathlib import Path

from .errors import ExtractionError, ManifestError
from .manifest import MANIFEST_FILENAME, ModManifest

logger = logging.getLogger(__name__)


class ModArchive:
    """
    Extracts a mod archive into a scratch directory.

    The scratch directory is wiped before every extraction so leftovers
    from an aborted install never leak into the next one.

    Usage:
        archive = ModArchive(Path("~/.modbridge/extracted_mod"))
        root = archive.extract(Path("my-mod.qmod"))
        manifest = archive.read_manifest()
        archive.discard()
    """

    def __init__(self, scratch_dir: Path):
        self.scratch_dir = Path(scratch_dir)

    @property
    def manifest_path(self) -> Path:
        return self.scratch_dir / MANIFEST_FILENAME

    def clear(self) -> None:
        """Remove any previous scratch contents and recreate the directory."""
        self.discard()
        self.scratch_dir.mkdir(parents=True, exist_ok=True)

    def discard(self) -> None:
        if self.scratch_dir.exists():
            shutil.rmtree(self.scratch_dir)

    def extract(self, archive_path: Path) -> Path:
        """Extract ``archive_path`` into the scratch directory.

        Raises:
            ExtractionError: if the archive is missing or not a valid zip file,
                or the scratch directory cannot be prepared.
        """
        archive_path = Path(archive_path)
        try:
            self.clear()
            if not archive_path.is_file():
                raise ExtractionError(str(archive_path), "file not found")

            with zipfile.ZipFile(archive_path) as zf:
                bad = zf.testzip()
                if bad is not None:
                    raise ExtractionError(str(archive_path), f"corrupt entry {bad}")
                zf.extractall(self.scratch_dir)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as e:
            raise ExtractionError(str(archive_path), str(e)) from e

        logger.debug(f"Extracted {archive_path} to {self.scratch_dir}")
        return self.scratch_dir

    def read_manifest(self) -> ModManifest:
        """Parse the extracted ``mod.json``.

        Raises:
            ManifestError: if the manifest is missing or invalid.
        """
        path = self.manifest_path
        if not path.is_file():
            raise ManifestError(f"archive has no {MANIFEST_FILENAME}", str(path))
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ManifestError(f"unreadable manifest: {e}", MANIFEST_FILENAME) from e
        return ModManifest.parse(text, MANIFEST_FILENAME)

    def local_path(self, relative_path: str) -> Path:
        return self.scratch_dir / relative_path

    def missing_files(self, manifest: ModManifest) -> list:
        """Declared files not present in the extracted tree."""
        return [p for p in manifest.all_files() if not self.local_path(p).is_file()]
