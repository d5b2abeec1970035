"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class UploadCommand:
    """Split and upload a file."""

    file_path: str
    fragment_size: int | None = None
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class DownloadCommand:
    """Restore a file from its manifest."""

    manifest_path: str
    output_path: str | None = None
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class TransferCommand:
    """Upload a file and restore it straight back."""

    file_path: str
    fragment_size: int | None = None
    command: Literal["transfer"] = "transfer"


@dataclass(frozen=True)
class ManifestCommand:
    """Show a manifest listing."""

    manifest_path: str
    command: Literal["manifest"] = "manifest"


@dataclass(frozen=True)
class ConfigCommand:
    """Show configuration."""

    command: Literal["config"] = "config"


@dataclass(frozen=True)
class SetCommand:
    """Change one configuration value."""

    key: str
    value: str
    command: Literal["set"] = "set"


CommandRequest = (
    UploadCommand
    | DownloadCommand
    | TransferCommand
    | ManifestCommand
    | ConfigCommand
    | SetCommand
)
