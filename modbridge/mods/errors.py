"""
Errors raised by the mod lifecycle engines.
"""

from typing import List, Optional


class ModError(Exception):
    """Base exception for mod lifecycle errors."""

    def __init__(self, message: str, code: str = "MOD_ERROR"):
        super().__init__(message)
        self.code = code


class ExtractionError(ModError):
    """Raised when a mod archive cannot be extracted."""

    def __init__(self, archive_path: str, reason: str):
        super().__init__(
            f"Failed to extract mod archive {archive_path}: {reason}",
            code="EXTRACTION_FAILED",
        )
        self.archive_path = archive_path


class ManifestError(ModError):
    """Raised when a manifest is missing, malformed or invalid."""

    def __init__(self, message: str, source: Optional[str] = None):
        if source:
            message = f"{source}: {message}"
        super().__init__(message, code="INVALID_MANIFEST")
        self.source = source


class WrongTargetError(ModError):
    """Raised when a mod is built for a different application."""

    def __init__(self, mod_id: str, game_id: str, expected: str):
        super().__init__(
            f"Mod {mod_id} targets {game_id}, not the selected app {expected}",
            code="WRONG_TARGET",
        )
        self.mod_id = mod_id
        self.game_id = game_id
        self.expected = expected


class AlreadyInstalledError(ModError):
    """Raised when installing a mod whose id is already installed."""

    def __init__(self, mod_id: str):
        super().__init__(
            f"Mod {mod_id} is already installed; uninstall it first",
            code="ALREADY_INSTALLED",
        )
        self.mod_id = mod_id


class NotInstalledError(ModError):
    """Raised when uninstalling a mod that is not installed."""

    def __init__(self, mod_id: str):
        super().__init__(f"Mod {mod_id} is not installed", code="NOT_INSTALLED")
        self.mod_id = mod_id


class DeploymentError(ModError):
    """Raised when pushing or deleting a specific remote file fails."""

    def __init__(self, path: str, reason: str, code: str = "DEPLOYMENT_FAILED"):
        super().__init__(f"{path}: {reason}", code=code)
        self.path = path
        self.reason = reason


class RemovalError(DeploymentError):
    """Raised at the end of an uninstall when one or more deletes failed."""

    def __init__(self, mod_id: str, failures: List[DeploymentError], report=None):
        paths = ", ".join(f.path for f in failures)
        ModError.__init__(
            self,
            f"Uninstall of {mod_id} left {len(failures)} file(s) behind: {paths}",
            code="REMOVAL_INCOMPLETE",
        )
        self.path = failures[0].path if failures else ""
        self.reason = "; ".join(str(f) for f in failures)
        self.mod_id = mod_id
        self.failures = failures
        self.report = report


class DiscoveryParseError(ModError):
    """A persisted manifest that could not be read or parsed.

    Collected during discovery rather than raised.
    """

    def __init__(self, path: str, reason: str):
        super().__init__(f"Skipping installed mod manifest {path}: {reason}", code="DISCOVERY_PARSE")
        self.path = path
        self.reason = reason


class BusyError(ModError):
    """Raised when another install or uninstall is already running."""

    def __init__(self, operation: str):
        super().__init__(
            f"Cannot {operation}: another mod operation is in progress",
            code="BUSY",
        )
        self.operation = operation
