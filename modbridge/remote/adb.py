"""
Android Debug Bridge transport.

Runs device commands through ``adb shell`` and copies files with
``adb push``, using asyncio subprocesses so callers can await them.
"""

import asyncio
import logging
import posixpath
import shlex
from pathlib import Path
from typing import List, Optional, Sequence

from .port import RemoteCommandError, RemoteCommandPort

logger = logging.getLogger(__name__)


class AdbBridge(RemoteCommandPort):
    """
    ``RemoteCommandPort`` backed by the ``adb`` executable.

    Usage:
        bridge = AdbBridge(serial="1WMHH000000000")
        output = await bridge.run_command(["ls", "/sdcard"])
        await bridge.push(Path("libfoo.so"), "/sdcard/libs/libfoo.so")
    """

    def __init__(
        self,
        adb_path: str = "adb",
        serial: Optional[str] = None,
        timeout: float = 60.0,
    ):
        super().__init__()
        self.adb_path = adb_path
        self.serial = serial
        self.timeout = timeout

    def _base_args(self) -> List[str]:
        args = [self.adb_path]
        if self.serial:
            args.extend(["-s", self.serial])
        return args

    async def _exec(self, args: List[str]) -> str:
        """Run adb with ``args`` and return stdout, raising on failure."""
        logger.debug(f"exec: {' '.join(args)}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise RemoteCommandError(f"adb executable not found: {self.adb_path}", args) from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise RemoteCommandError(
                f"Command timed out after {self.timeout}s: {' '.join(args)}", args
            ) from e
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
            raise

        out = stdout.decode("utf-8", errors="replace")
        if proc.returncode != 0:
            err = stderr.decode("utf-8", errors="replace").strip()
            error_msg = f"Command failed (exit code {proc.returncode}): {' '.join(args)}"
            if err:
                error_msg += f"\n{err}"
            raise RemoteCommandError(error_msg, args, out)

        return out

    async def run_command(self, args: Sequence[str]) -> str:
        remote_cmd = " ".join(shlex.quote(a) for a in args)
        return await self._exec(self._base_args() + ["shell", remote_cmd])

    async def push(self, local_path: Path, remote_path: str) -> bool:
        parent = posixpath.dirname(remote_path)
        try:
            if parent:
                await self.run_command(["mkdir", "-p", parent])
            await self._exec(self._base_args() + ["push", str(local_path), remote_path])
        except RemoteCommandError as e:
            logger.error(f"Push failed: {e}")
            return False
        return True

    async def devices(self) -> List[str]:
        """Serials of devices in the ``device`` state."""
        output = await self._exec([self.adb_path, "devices"])
        serials = []
        for line in output.splitlines()[1:]:
            parts = line.strip().split()
            if len(parts) >= 2 and parts[1] == "device":
                serials.append(parts[0])
        return serials
