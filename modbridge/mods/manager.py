"""
Mod manager for modbridge.

Coordinates discovery, installation and removal against one device:
- One shared registry, injected into every engine
- At most one install or uninstall in flight; later requests queue
- Operation records and progress callbacks for presentation layers
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from ..config import Config
from ..remote.port import RemoteCommandPort, RemoteFiles
from .archive import ModArchive
from .discovery import DiscoveryResult, ModDiscovery
from .errors import BusyError, ModError, RemovalError
from .installer import ModInstaller
from .manifest import ModManifest
from .registry import InstalledModRegistry
from .remover import ModRemover, RemovalReport

logger = logging.getLogger(__name__)


class OperationType(Enum):
    """Kind of mod operation."""
    INSTALL = "install"
    UNINSTALL = "uninstall"


class OperationStatus(Enum):
    """Status of a mod operation."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class OperationRecord:
    """
    Record of an install or uninstall.
    """
    operation: OperationType
    target: str  # archive path or mod id
    status: OperationStatus = OperationStatus.PENDING
    mod_id: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
    exception: Optional[ModError] = None
    messages: List[str] = field(default_factory=list)
    removal: Optional[RemovalReport] = None

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.COMPLETED

    def to_dict(self) -> dict:
        return {
            "operation": self.operation.value,
            "target": self.target,
            "status": self.status.value,
            "mod_id": self.mod_id,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "error": self.error,
            "messages": self.messages,
            "removal": self.removal.to_dict() if self.removal else None,
        }


class ModManager:
    """
    Manages the mods installed on one device.

    Usage:
        manager = ModManager(AdbBridge(), config)
        manager.on_progress = print

        await manager.load()
        record = await manager.install(Path("my-mod.qmod"))
        if not record.ok:
            print(record.error)

        await manager.uninstall("my-mod")
    """

    def __init__(
        self,
        port: RemoteCommandPort,
        config: Config,
        registry: Optional[InstalledModRegistry] = None,
        fail_fast: bool = False,
    ):
        self.config = config
        self.registry = registry if registry is not None else InstalledModRegistry()
        self.layout = config.remote_layout()
        self.fail_fast = fail_fast

        files = RemoteFiles(port)
        self.discovery = ModDiscovery(files, self.layout, self.registry)
        self.installer = ModInstaller(
            files, self.layout, self.registry,
            ModArchive(config.extract_dir),
            app_id=config.app_id,
        )
        self.remover = ModRemover(files, self.layout, self.registry)

        # Serialises install/uninstall; asyncio.Lock wakes waiters in FIFO order
        self._lock = asyncio.Lock()

        # Reporting sink
        self.on_progress: Optional[Callable[[str], None]] = None
        self.on_complete: Optional[Callable[[OperationRecord], None]] = None
        self.on_failed: Optional[Callable[[OperationRecord], None]] = None

    @property
    def busy(self) -> bool:
        """True while an operation holds the device."""
        return self._lock.locked()

    def installed(self) -> List[ModManifest]:
        """Snapshot of installed mods."""
        return self.registry.all()

    def get(self, mod_id: str) -> Optional[ModManifest]:
        return self.registry.get(mod_id)

    async def load(self) -> DiscoveryResult:
        """Rebuild the registry from manifests persisted on the device."""
        async with self._lock:
            return await self.discovery.load_all()

    async def install(self, archive_path: Path) -> OperationRecord:
        """Install a mod archive. Failures are reported in the record."""
        record = OperationRecord(OperationType.INSTALL, str(archive_path))

        async def run():
            manifest = await self.installer.install(
                Path(archive_path), progress=lambda m: self._progress(record, m)
            )
            record.mod_id = manifest.id

        return await self._run(record, run)

    async def uninstall(self, mod_id: str) -> OperationRecord:
        """Uninstall a mod by id. Failures are reported in the record."""
        record = OperationRecord(OperationType.UNINSTALL, mod_id, mod_id=mod_id)

        async def run():
            record.removal = await self.remover.uninstall(
                mod_id, progress=lambda m: self._progress(record, m)
            )

        return await self._run(record, run)

    async def _run(self, record: OperationRecord, run) -> OperationRecord:
        if self.fail_fast and self.busy:
            raise BusyError(record.operation.value)

        async with self._lock:
            record.status = OperationStatus.IN_PROGRESS
            record.started_at = datetime.now()

            try:
                await run()
            except asyncio.CancelledError:
                record.status = OperationStatus.CANCELLED
                record.completed_at = datetime.now()
                logger.warning(f"{record.operation.value} of {record.target} cancelled; device may hold a partial state")
                raise
            except ModError as e:
                record.status = OperationStatus.FAILED
                record.error = str(e)
                record.exception = e
                if isinstance(e, RemovalError):
                    record.removal = e.report
                record.completed_at = datetime.now()
                logger.error(f"{record.operation.value} of {record.target} failed: {e}")

                if self.on_failed:
                    self.on_failed(record)
                return record

            record.status = OperationStatus.COMPLETED
            record.completed_at = datetime.now()
            logger.info(f"{record.operation.value} of {record.target} completed")

            if self.on_complete:
                self.on_complete(record)
            return record

    def _progress(self, record: OperationRecord, message: str) -> None:
        record.messages.append(message)
        logger.info(message)
        if self.on_progress:
            self.on_progress(message)
