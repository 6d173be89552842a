"""
Remote command port.

The mod engines never talk to a device directly. They go through a
``RemoteCommandPort`` (raw command execution plus file push), wrapped by
``RemoteFiles`` which exposes the small typed vocabulary the engines need.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Sequence

logger = logging.getLogger(__name__)


class RemoteCommandError(Exception):
    """Raised when a remote command or push fails."""

    def __init__(self, message: str, command: Optional[Sequence[str]] = None, output: str = ""):
        super().__init__(message)
        self.command = list(command) if command else []
        self.output = output


class RemoteCommandPort(ABC):
    """
    Abstract channel to a remote device.

    Implementations run a command line on the device and return its
    textual output, and copy local files to remote paths.
    """

    @abstractmethod
    async def run_command(self, args: Sequence[str]) -> str:
        """Run a command on the device and return its output.

        Raises:
            RemoteCommandError: if the command could not be run or failed.
        """

    @abstractmethod
    async def push(self, local_path: Path, remote_path: str) -> bool:
        """Copy a local file to the device. Returns False on failure."""


class RemoteFiles:
    """
    Typed file operations over a ``RemoteCommandPort``.

    Usage:
        files = RemoteFiles(port)
        await files.ensure_dir("/sdcard/mods")
        text = await files.read_text("/sdcard/mods/a.json")
    """

    def __init__(self, port: RemoteCommandPort):
        self.port = port

    async def ensure_dir(self, path: str) -> None:
        """Create a directory and its parents; no-op if it exists."""
        await self.port.run_command(["mkdir", "-p", path])

    async def list_dir(self, path: str) -> str:
        """Raw recursive listing of a directory.

        The output is returned untouched; callers parse it.
        """
        return await self.port.run_command(["ls", "-R", path])

    async def read_text(self, path: str) -> str:
        return await self.port.run_command(["cat", path])

    async def delete(self, path: str) -> None:
        """Delete a file; succeeds if the file is already gone."""
        await self.port.run_command(["rm", "-f", path])

    async def push(self, local_path: Path, remote_path: str) -> None:
        logger.debug(f"push {local_path} -> {remote_path}")
        ok = await self.port.push(Path(local_path), remote_path)
        if not ok:
            raise RemoteCommandError(f"Push failed: {local_path} -> {remote_path}")
