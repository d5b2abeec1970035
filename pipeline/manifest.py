"""Transfer manifest: the ordered fragment index to content ID record."""

import hashlib
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from common.constants import MANIFEST_SUFFIX
from common.exceptions import ManifestFormatError, ManifestIncompleteError, OutputWriteError
from common.logging_config import get_logger

logger = get_logger(__name__)

MANIFEST_VERSION = 1


class ManifestEntry(BaseModel):
    """One stored fragment."""
    index: int = Field(ge=0)
    content_id: str
    size: int = Field(ge=0)


class TransferManifest(BaseModel):
    """
    Everything needed to rebuild a source file from the object store.

    Entries are appended in upload order and must end up covering
    indexes 0..fragment_count-1 exactly once, in order.
    """
    version: int = MANIFEST_VERSION
    source_name: str
    total_size: int = Field(ge=0)
    fragment_size: int = Field(gt=0)
    fragment_count: int = Field(ge=0)
    digest: str
    digest_algorithm: str
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    entries: List[ManifestEntry] = Field(default_factory=list)

    @field_validator('digest_algorithm')
    @classmethod
    def _known_algorithm(cls, value: str) -> str:
        if value not in hashlib.algorithms_available:
            raise ValueError(f"unsupported digest algorithm: {value}")
        return value

    def record(self, index: int, content_id: str, size: int) -> ManifestEntry:
        """
        Append the content ID for the next fragment.

        Raises:
            ValueError: If index is not the next expected index
        """
        if index != len(self.entries):
            raise ValueError(f"Expected fragment {len(self.entries)}, got {index}")
        entry = ManifestEntry(index=index, content_id=content_id, size=size)
        self.entries.append(entry)
        return entry

    @property
    def is_complete(self) -> bool:
        return len(self.entries) == self.fragment_count and all(
            entry.index == i for i, entry in enumerate(self.entries)
        )

    def ensure_complete(self) -> None:
        """
        Raises:
            ManifestIncompleteError: If any fragment lacks a content ID
        """
        if not self.is_complete:
            recorded = sum(1 for i, entry in enumerate(self.entries) if entry.index == i)
            raise ManifestIncompleteError(self.fragment_count, recorded)

    def listing(self) -> str:
        """Human-readable (index, content ID) listing."""
        lines = [
            f"Manifest for {self.source_name} "
            f"({self.total_size} bytes, {self.fragment_count} fragment(s), "
            f"{self.digest_algorithm} {self.digest})"
        ]
        for entry in self.entries:
            lines.append(f"  fragment {entry.index:02d} root: {entry.content_id}")
        missing = self.fragment_count - len(self.entries)
        if missing > 0:
            lines.append(f"  ({missing} fragment(s) not recorded)")
        return '\n'.join(lines)

    def save(self, path: Union[str, Path]) -> Path:
        """
        Write the manifest as JSON, replacing any previous file atomically.

        Returns:
            Path the manifest was written to

        Raises:
            OutputWriteError: If the file cannot be written
        """
        path = Path(path)
        tmp_path = path.with_name(path.name + '.tmp')
        try:
            tmp_path.write_text(self.model_dump_json(indent=2))
            tmp_path.replace(path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise OutputWriteError(str(path), e) from e
        logger.info(f"Manifest saved to {path} ({len(self.entries)} entries)")
        return path

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'TransferManifest':
        """
        Read a manifest JSON file.

        Raises:
            ManifestFormatError: If the file is missing or not a valid manifest
        """
        path = Path(path)
        try:
            raw = path.read_text()
        except OSError as e:
            raise ManifestFormatError(f"Cannot read manifest {path}: {e}") from e

        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise ManifestFormatError(f"Invalid manifest {path}: {e}") from e


def default_manifest_path(source_path: Union[str, Path], suffix: Optional[str] = None) -> Path:
    source_path = Path(source_path)
    return source_path.with_name(source_path.name + (suffix or MANIFEST_SUFFIX))
