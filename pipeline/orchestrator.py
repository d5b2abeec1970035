"""Drives one split, upload, download and verify run against an object store."""

import hashlib
import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union

from common.constants import (
    DEFAULT_DIGEST_ALGORITHM,
    DOWNLOAD_TIMEOUT_SECONDS,
    FRAGMENT_SIZE_BYTES,
    RESTORED_SUFFIX,
    UPLOAD_TIMEOUT_SECONDS,
    WORK_DIR_PREFIX,
)
from common.exceptions import (
    ConfigurationError,
    IntegrityMismatchError,
    OutputWriteError,
    SourceReadError,
    SplitupError,
    TransferError,
)
from common.logging_config import get_logger
from pipeline.checksum import file_digest
from pipeline.chunker import fragment_count, split_file
from pipeline.manifest import ManifestEntry, TransferManifest, default_manifest_path
from storage.base import ObjectStore

logger = get_logger(__name__)


class PipelineState(str, Enum):
    INIT = "INIT"
    SPLITTING = "SPLITTING"
    UPLOADING = "UPLOADING"
    UPLOADED = "UPLOADED"
    DOWNLOADING = "DOWNLOADING"
    MERGING = "MERGING"
    VERIFIED = "VERIFIED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class PipelineConfig:
    """Settings for one pipeline run."""

    fragment_size: int = FRAGMENT_SIZE_BYTES
    upload_timeout: float = UPLOAD_TIMEOUT_SECONDS
    download_timeout: float = DOWNLOAD_TIMEOUT_SECONDS
    digest_algorithm: str = DEFAULT_DIGEST_ALGORITHM
    work_dir: Optional[Path] = None

    def __post_init__(self):
        if self.fragment_size <= 0:
            raise ConfigurationError(f"fragment_size must be positive, got {self.fragment_size}")
        if self.upload_timeout <= 0 or self.download_timeout <= 0:
            raise ConfigurationError("timeouts must be positive")
        if self.digest_algorithm not in hashlib.algorithms_available:
            raise ConfigurationError(f"Unsupported digest algorithm: {self.digest_algorithm}")


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of a full upload and restore run."""

    manifest: TransferManifest
    manifest_path: Path
    output_path: Path
    source_digest: str
    restored_digest: str

    @property
    def verified(self) -> bool:
        return self.source_digest == self.restored_digest


# stage ('uploaded' or 'downloaded'), entry, total fragment count
FragmentCallback = Callable[[str, ManifestEntry, int], None]


class TransferPipeline:
    """
    Sequential chunked transfer through an ObjectStore.

    One instance drives one run. Fragments go up and come down one at a
    time, in index order. Temporary fragment files and the reassembly sink
    are removed on every exit path.
    """

    def __init__(
        self,
        store: ObjectStore,
        config: Optional[PipelineConfig] = None,
        on_fragment: Optional[FragmentCallback] = None,
    ):
        self.store = store
        self.config = config or PipelineConfig()
        self.on_fragment = on_fragment
        self.history: List[PipelineState] = [PipelineState.INIT]
        self.manifest: Optional[TransferManifest] = None
        self.restored_digest: Optional[str] = None

    @property
    def state(self) -> PipelineState:
        return self.history[-1]

    def _transition(self, state: PipelineState) -> None:
        logger.debug(f"Pipeline state {self.state.value} -> {state.value}")
        self.history.append(state)

    def _notify(self, stage: str, entry: ManifestEntry, total: int) -> None:
        if self.on_fragment is not None:
            self.on_fragment(stage, entry, total)

    def upload(
        self,
        source_path: Union[str, Path],
        manifest_path: Optional[Union[str, Path]] = None,
    ) -> TransferManifest:
        """
        Digest, split and upload a file, then persist its manifest.

        Args:
            source_path: File to upload
            manifest_path: Where to write the manifest (default <source>.manifest.json)

        Returns:
            The complete manifest, already saved to disk

        Raises:
            SourceReadError: If the source cannot be read
            TransferError: If a fragment upload fails; .manifest holds the entries
                recorded before the failure
            OutputWriteError: If the manifest cannot be written
        """
        source_path = Path(source_path)
        manifest_path = Path(manifest_path) if manifest_path else default_manifest_path(source_path)

        try:
            self._transition(PipelineState.SPLITTING)
            try:
                source_digest = file_digest(source_path, self.config.digest_algorithm)
                total_size = source_path.stat().st_size
            except OSError as e:
                raise SourceReadError(str(source_path), None, e) from e
            logger.info(f"Source {source_path.name}: {total_size} bytes, {self.config.digest_algorithm} {source_digest}")

            self.manifest = TransferManifest(
                source_name=source_path.name,
                total_size=total_size,
                fragment_size=self.config.fragment_size,
                fragment_count=fragment_count(total_size, self.config.fragment_size),
                digest=source_digest,
                digest_algorithm=self.config.digest_algorithm,
            )

            with tempfile.TemporaryDirectory(prefix=WORK_DIR_PREFIX, dir=self.config.work_dir) as tmp_dir:
                fragments = split_file(source_path, tmp_dir, self.config.fragment_size)
                if len(fragments) != self.manifest.fragment_count:
                    raise SourceReadError(
                        str(source_path), len(fragments),
                        OSError(f"expected {self.manifest.fragment_count} fragments, read {len(fragments)}"),
                    )

                self._transition(PipelineState.UPLOADING)
                total = len(fragments)
                for fragment in fragments:
                    logger.info(f"[{fragment.index + 1}/{total}] Uploading {fragment.path.name} ({fragment.size} bytes)")
                    try:
                        data = fragment.path.read_bytes()
                    except OSError as e:
                        raise SourceReadError(str(fragment.path), fragment.index, e) from e

                    try:
                        content_id = self.store.put(data, timeout=self.config.upload_timeout)
                    except TransferError as e:
                        raise e.with_index(fragment.index)

                    entry = self.manifest.record(fragment.index, content_id, fragment.size)
                    logger.info(f"Fragment {fragment.index} uploaded, root = {content_id}")
                    self._notify('uploaded', entry, total)

            self.manifest.ensure_complete()
            self.manifest.save(manifest_path)
            self._transition(PipelineState.UPLOADED)
            return self.manifest

        except TransferError as e:
            e.manifest = self.manifest
            self._fail(e)
            raise
        except BaseException as e:
            self._fail(e)
            raise

    def restore(
        self,
        manifest: TransferManifest,
        output_path: Optional[Union[str, Path]] = None,
    ) -> Path:
        """
        Download every fragment in index order, reassemble and verify.

        The reassembled bytes are written to a temporary file next to
        output_path and only renamed into place once the digest matches.

        Args:
            manifest: Complete manifest from upload()
            output_path: Destination (default <source_name>.restored in the current directory)

        Returns:
            Path of the verified restored file

        Raises:
            ManifestIncompleteError: If the manifest lacks content IDs
            TransferError: If a fragment download fails or returns the wrong size
            IntegrityMismatchError: If the reassembled digest differs
            OutputWriteError: If the restored file cannot be written
        """
        self.manifest = manifest
        output_path = Path(output_path) if output_path else Path(manifest.source_name + RESTORED_SUFFIX)
        tmp_path = None

        try:
            manifest.ensure_complete()
            self._transition(PipelineState.DOWNLOADING)

            try:
                output_path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(prefix='.' + output_path.name + '.', suffix='.part', dir=output_path.parent)
            except OSError as e:
                raise OutputWriteError(str(output_path), e) from e
            tmp_path = Path(tmp_name)

            total = len(manifest.entries)
            with os.fdopen(fd, 'wb') as out:
                for entry in manifest.entries:
                    logger.info(f"[{entry.index + 1}/{total}] Downloading root {entry.content_id}")
                    try:
                        data = self.store.get(entry.content_id, timeout=self.config.download_timeout)
                    except TransferError as e:
                        raise e.with_index(entry.index)

                    if len(data) != entry.size:
                        raise TransferError(
                            f"Expected {entry.size} bytes, got {len(data)}",
                            index=entry.index,
                            content_id=entry.content_id,
                        )
                    try:
                        out.write(data)
                    except OSError as e:
                        raise OutputWriteError(str(tmp_path), e) from e
                    logger.info(f"Fragment {entry.index} downloaded, {len(data)} bytes")
                    self._notify('downloaded', entry, total)

            self._transition(PipelineState.MERGING)
            restored_digest = file_digest(tmp_path, manifest.digest_algorithm)
            self.restored_digest = restored_digest
            if restored_digest != manifest.digest:
                raise IntegrityMismatchError(manifest.digest, restored_digest)

            try:
                os.replace(tmp_path, output_path)
            except OSError as e:
                raise OutputWriteError(str(output_path), e) from e
            tmp_path = None
            self._transition(PipelineState.VERIFIED)
            logger.info(f"Restored {output_path} verified ({manifest.digest_algorithm} {restored_digest})")
            return output_path

        except BaseException as e:
            self._fail(e)
            raise
        finally:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)

    def run(
        self,
        source_path: Union[str, Path],
        output_path: Optional[Union[str, Path]] = None,
        manifest_path: Optional[Union[str, Path]] = None,
    ) -> PipelineResult:
        """
        Upload a file and immediately restore it, verifying the round trip.

        Args:
            source_path: File to transfer
            output_path: Restored file (default <source>.restored beside the source)
            manifest_path: Manifest file (default <source>.manifest.json)

        Returns:
            PipelineResult for the verified run

        Raises:
            SplitupError: Any pipeline failure
        """
        source_path = Path(source_path)
        output_path = Path(output_path) if output_path else source_path.with_name(source_path.name + RESTORED_SUFFIX)
        manifest_path = Path(manifest_path) if manifest_path else default_manifest_path(source_path)

        manifest = self.upload(source_path, manifest_path)
        restored = self.restore(manifest, output_path)

        return PipelineResult(
            manifest=manifest,
            manifest_path=manifest_path,
            output_path=restored,
            source_digest=manifest.digest,
            restored_digest=self.restored_digest,
        )

    def _fail(self, error: BaseException) -> None:
        if self.state is not PipelineState.FAILED:
            self._transition(PipelineState.FAILED)
        if isinstance(error, SplitupError):
            logger.error(f"Pipeline failed: {error}")
        elif isinstance(error, KeyboardInterrupt):
            logger.warning("Pipeline interrupted, temporary files removed")
        else:
            logger.error(f"Pipeline failed: {error}", exc_info=True)
