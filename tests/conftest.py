"""
Shared fixtures: an in-memory device and mod archive builders.
"""

import json
import posixpath
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set

import pytest

from modbridge.config import Config
from modbridge.mods.registry import InstalledModRegistry
from modbridge.remote.port import RemoteCommandError, RemoteCommandPort

APP_ID = "com.example.app"


class FakeDevice(RemoteCommandPort):
    """
    In-memory device speaking the mkdir/ls/cat/rm vocabulary.

    ``ls -R`` output mimics adb: a ``<dir>:`` header, CRLF line endings, a
    blank line after each block and one block per subdirectory.
    """

    def __init__(self):
        super().__init__()
        self.files: Dict[str, bytes] = {}
        self.dirs: Set[str] = {"/"}
        self.commands: List[List[str]] = []
        self.pushes: List[str] = []
        self.deletes: List[str] = []
        self.fail_pushes: Set[str] = set()
        self.fail_deletes: Set[str] = set()
        self.fail_reads: Set[str] = set()

    @property
    def mutations(self) -> List[str]:
        return self.pushes + self.deletes

    def _add_dir(self, path: str) -> None:
        path = path.rstrip("/") or "/"
        while path not in self.dirs:
            self.dirs.add(path)
            path = posixpath.dirname(path) or "/"

    def put(self, path: str, content) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self._add_dir(posixpath.dirname(path))
        self.files[path] = content

    def read(self, path: str) -> str:
        return self.files[path].decode("utf-8")

    def exists(self, path: str) -> bool:
        return path in self.files

    def listdir(self, path: str) -> List[str]:
        prefix = path.rstrip("/") + "/"
        names = {
            p[len(prefix):].split("/", 1)[0]
            for p in list(self.files) + list(self.dirs)
            if p.startswith(prefix) and p != prefix
        }
        return sorted(names)

    def listing(self, path: str) -> List[str]:
        lines = [f"{path}:"] + self.listdir(path) + [""]
        for name in self.listdir(path):
            child = f"{path}/{name}"
            if child in self.dirs:
                lines += self.listing(child)
        return lines

    async def run_command(self, args: Sequence[str]) -> str:
        args = list(args)
        self.commands.append(args)
        cmd = args[0]

        if cmd == "mkdir" and args[1] == "-p":
            self._add_dir(args[2])
            return ""

        if cmd == "ls" and args[1] == "-R":
            path = args[2].rstrip("/")
            if path not in self.dirs:
                raise RemoteCommandError(f"ls: {path}: No such file or directory", args)
            return "\r\n".join(self.listing(path))

        if cmd == "cat":
            path = args[1]
            if path in self.fail_reads or path not in self.files:
                raise RemoteCommandError(f"cat: {path}: No such file or directory", args)
            return self.read(path)

        if cmd == "rm" and args[1] == "-f":
            path = args[2]
            if path in self.fail_deletes:
                raise RemoteCommandError(f"rm: {path}: Permission denied", args)
            self.deletes.append(path)
            self.files.pop(path, None)
            return ""

        raise RemoteCommandError(f"unsupported command: {args}", args)

    async def push(self, local_path: Path, remote_path: str) -> bool:
        if remote_path in self.fail_pushes:
            return False
        self.pushes.append(remote_path)
        self.put(remote_path, Path(local_path).read_bytes())
        return True


def manifest_dict(
    mod_id: str,
    mod_files: Optional[List[str]] = None,
    library_files: Optional[List[str]] = None,
    game_id: str = APP_ID,
    **extra,
) -> dict:
    data = {
        "id": mod_id,
        "name": extra.pop("name", mod_id.title()),
        "version": extra.pop("version", "1.0.0"),
        "gameId": game_id,
        "gameVersion": extra.pop("gameVersion", "1.16.4"),
        "modFiles": mod_files if mod_files is not None else [],
        "libraryFiles": library_files if library_files is not None else [],
    }
    data.update(extra)
    return data


@pytest.fixture
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(app_id=APP_ID, data_dir=tmp_path / "data")


@pytest.fixture
def layout(config):
    return config.remote_layout()


@pytest.fixture
def registry() -> InstalledModRegistry:
    return InstalledModRegistry()


@pytest.fixture
def make_archive(tmp_path):
    """Build a mod archive; payload files get generated content."""

    def _make(manifest, files: Optional[Dict[str, bytes]] = None, name: Optional[str] = None, skip=()):
        if isinstance(manifest, dict):
            text = json.dumps(manifest)
            declared = manifest.get("libraryFiles", []) + manifest.get("modFiles", [])
            stem = manifest.get("id", "mod")
        else:
            text = manifest
            declared = []
            stem = "mod"

        payload = {p: f"payload of {p}".encode() for p in declared if p not in skip}
        payload.update(files or {})

        path = tmp_path / (name or f"{stem}.qmod")
        with zipfile.ZipFile(path, "w") as zf:
            if text is not None:
                zf.writestr("mod.json", text)
            for rel, content in payload.items():
                zf.writestr(rel, content)
        return path

    return _make
