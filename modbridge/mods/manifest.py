"""
Mod manifest model.

A mod archive carries a ``mod.json`` describing the mod's identity, the
application it targets, and the files it deploys. The same document is
persisted on the device as ``<id>.json`` once the mod is installed.
"""

import json
from pathlib import PurePosixPath
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ManifestError

MANIFEST_FILENAME = "mod.json"


def _check_relative_path(path: str) -> str:
    if not path:
        raise ValueError("empty file path")
    if "\\" in path:
        raise ValueError(f"path must use forward slashes: {path!r}")
    pure = PurePosixPath(path)
    if pure.is_absolute():
        raise ValueError(f"path must be relative: {path!r}")
    if ".." in pure.parts:
        raise ValueError(f"path escapes the archive root: {path!r}")
    if not pure.parts:
        raise ValueError(f"path names no file: {path!r}")
    return path


class ModManifest(BaseModel):
    """
    Declaration of a mod: identity, target application and payload files.

    Manifests are immutable and compare equal when their ids match.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    name: str = ""
    version: str = ""
    game_id: str = Field(alias="gameId")
    game_version: str = Field(default="", alias="gameVersion")

    # Private application-level files, relative to the archive root
    mod_files: Tuple[str, ...] = Field(default=(), alias="modFiles")
    # Shared native libraries, relative to the archive root
    library_files: Tuple[str, ...] = Field(default=(), alias="libraryFiles")

    @field_validator("id")
    @classmethod
    def _validate_id(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("mod id must not be empty")
        if "/" in value or "\\" in value or value in (".", ".."):
            raise ValueError(f"mod id is not a valid file name: {value!r}")
        return value

    @field_validator("game_id")
    @classmethod
    def _validate_game_id(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("gameId must not be empty")
        return value

    @field_validator("mod_files", "library_files")
    @classmethod
    def _validate_paths(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        for path in value:
            _check_relative_path(path)
        return value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ModManifest):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def all_files(self) -> Tuple[str, ...]:
        """Library files followed by mod files, in push order."""
        return self.library_files + self.mod_files

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "gameId": self.game_id,
            "gameVersion": self.game_version,
            "modFiles": list(self.mod_files),
            "libraryFiles": list(self.library_files),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: Optional[str] = None) -> "ModManifest":
        if not isinstance(data, dict):
            raise ManifestError("manifest must be a JSON object", source)
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ManifestError(_format_validation_error(e), source) from e

    @classmethod
    def parse(cls, text: str, source: Optional[str] = None) -> "ModManifest":
        """Parse a serialized manifest document.

        Raises:
            ManifestError: if the text is not valid JSON or fails validation.
        """
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, TypeError) as e:
            raise ManifestError(f"malformed manifest: {e}", source) from e
        return cls.from_dict(data, source)


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item.get("loc", ()))
        msg = item.get("msg", "invalid")
        problems.append(f"{loc}: {msg}" if loc else msg)
    return "invalid manifest (" + "; ".join(problems) + ")"


def parse_manifest(text: str, source: Optional[str] = None) -> ModManifest:
    """Parse a manifest document; see ``ModManifest.parse``."""
    return ModManifest.parse(text, source)
