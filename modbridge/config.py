"""
Configuration management for modbridge.

Handles:
- Target application identity
- Device selection and adb location
- Remote directory layout
- Local scratch space for archive extraction
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Default paths
DEFAULT_DATA_DIR = Path.home() / ".modbridge"

# Remote layout used by Quest-style Android devices
DEFAULT_MANIFESTS_DIR = "/sdcard/QuestPatcher/{app_id}/installedMods"
DEFAULT_MODS_DIR = "/sdcard/Android/data/{app_id}/files/mods"
DEFAULT_LIBS_DIR = "/sdcard/Android/data/{app_id}/files/libs"

DEFAULT_COMMAND_TIMEOUT = 60.0


@dataclass
class RemoteLayout:
    """
    Remote directories a mod is deployed into.

    Paths may contain an ``{app_id}`` placeholder; use ``resolve`` to
    substitute it.
    """
    manifests_dir: str = DEFAULT_MANIFESTS_DIR
    mods_dir: str = DEFAULT_MODS_DIR
    libs_dir: str = DEFAULT_LIBS_DIR

    def resolve(self, app_id: str) -> "RemoteLayout":
        return RemoteLayout(
            manifests_dir=self.manifests_dir.format(app_id=app_id).rstrip("/"),
            mods_dir=self.mods_dir.format(app_id=app_id).rstrip("/"),
            libs_dir=self.libs_dir.format(app_id=app_id).rstrip("/"),
        )

    def manifest_path(self, mod_id: str) -> str:
        """Remote path of the persisted manifest for a mod."""
        return f"{self.manifests_dir}/{mod_id}.json"

    def mod_file_path(self, relative_path: str) -> str:
        return f"{self.mods_dir}/{relative_path}"

    def library_path(self, relative_path: str) -> str:
        return f"{self.libs_dir}/{relative_path}"

    def directories(self) -> list:
        return [self.manifests_dir, self.mods_dir, self.libs_dir]

    def to_dict(self) -> dict:
        return {
            "manifests_dir": self.manifests_dir,
            "mods_dir": self.mods_dir,
            "libs_dir": self.libs_dir,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RemoteLayout":
        known_fields = {"manifests_dir", "mods_dir", "libs_dir"}
        filtered = {k: v for k, v in data.items() if k in known_fields}
        return cls(**filtered)


@dataclass
class Config:
    """
    Main modbridge configuration.

    Stored at ~/.modbridge/config.json
    """
    # Target application (package id on the device)
    app_id: Optional[str] = None

    # Device access
    adb_path: str = "adb"
    device_serial: Optional[str] = None
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT

    # Paths
    data_dir: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)
    scratch_dir: Optional[Path] = None

    layout: RemoteLayout = field(default_factory=RemoteLayout)

    @property
    def config_path(self) -> Path:
        return self.data_dir / "config.json"

    @property
    def extract_dir(self) -> Path:
        """Scratch directory archives are extracted into before pushing."""
        return Path(self.scratch_dir) if self.scratch_dir else self.data_dir / "extracted_mod"

    def remote_layout(self) -> RemoteLayout:
        """Remote layout with the target app id substituted."""
        if not self.app_id:
            raise ValueError("No target app id configured (run `modbridge init --app-id ...`)")
        return self.layout.resolve(self.app_id)

    def ensure_data_dir(self) -> None:
        """Create data directory if it doesn't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "app_id": self.app_id,
            "adb_path": self.adb_path,
            "device_serial": self.device_serial,
            "command_timeout": self.command_timeout,
            "scratch_dir": str(self.scratch_dir) if self.scratch_dir else None,
            "layout": self.layout.to_dict(),
        }

    def save(self) -> None:
        """Save configuration to disk."""
        self.ensure_data_dir()

        with open(self.config_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.debug(f"Configuration saved to {self.config_path}")

    @classmethod
    def from_dict(cls, data: dict, data_dir: Optional[Path] = None) -> "Config":
        scratch = data.get("scratch_dir")
        return cls(
            data_dir=data_dir or DEFAULT_DATA_DIR,
            app_id=data.get("app_id"),
            adb_path=data.get("adb_path", "adb"),
            device_serial=data.get("device_serial"),
            command_timeout=float(data.get("command_timeout", DEFAULT_COMMAND_TIMEOUT)),
            scratch_dir=Path(scratch) if scratch else None,
            layout=RemoteLayout.from_dict(data.get("layout", {})),
        )

    @classmethod
    def load(cls, data_dir: Optional[Path] = None) -> "Config":
        """Load configuration from disk."""
        data_dir = data_dir or DEFAULT_DATA_DIR
        config_path = data_dir / "config.json"

        if not config_path.exists():
            return cls(data_dir=data_dir)

        with open(config_path, 'r') as f:
            data = json.load(f)

        return cls.from_dict(data, data_dir=data_dir)

    @classmethod
    def exists(cls, data_dir: Optional[Path] = None) -> bool:
        """Check if configuration exists."""
        data_dir = data_dir or DEFAULT_DATA_DIR
        return (data_dir / "config.json").exists()


# Global config instance
_config: Optional[Config] = None


def get_config(data_dir: Optional[Path] = None) -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.load(data_dir)
    return _config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
