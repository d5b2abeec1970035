"""Command handler functions for CLI operations."""

import json
from pathlib import Path
from typing import Optional

from common.constants import RESTORED_SUFFIX
from common.exceptions import ConfigurationError, IntegrityMismatchError, SplitupError, TransferError
from common.logging_config import get_logger
from cli.config import Config
from cli.constants import GREEN, RED, RESET
from cli.models import (
    ConfigCommand,
    DownloadCommand,
    ManifestCommand,
    SetCommand,
    TransferCommand,
    UploadCommand,
)
from cli.types import CommandResult
from cli.utils import format_file_size, print_fragment_progress
from pipeline.manifest import TransferManifest, default_manifest_path
from pipeline.orchestrator import TransferPipeline
from storage.base import ObjectStore
from storage.gateway import GatewayStore
from storage.local import LocalStore

logger = get_logger(__name__)


def open_store(config: Config) -> ObjectStore:
    """
    Create the object store selected by the configuration.

    Returns:
        GatewayStore or LocalStore instance
    """
    kind = config.get_store_kind()
    if kind == 'local':
        return LocalStore(config.get_local_store_path())
    if kind == 'gateway':
        return GatewayStore(config.get_gateway_options())
    raise ConfigurationError(f"Unknown store kind: {kind}")


def _failure(error: SplitupError) -> CommandResult:
    lines = [f"{RED}Error:{RESET} {error}"]
    if isinstance(error, TransferError) and error.manifest is not None and error.manifest.entries:
        lines.append("Fragments stored before the failure:")
        lines.append(error.manifest.listing())
    if isinstance(error, IntegrityMismatchError):
        lines.append("Restored file differs from the original and was discarded.")
    return CommandResult(False, '\n'.join(lines))


def handle_upload(cmd: UploadCommand, config: Config, store: Optional[ObjectStore] = None) -> CommandResult:
    """
    Handle 'upload' command.

    Args:
        cmd: UploadCommand with file path and optional fragment size
        config: Configuration instance
        store: Optional ObjectStore for dependency injection (testing)

    Returns:
        CommandResult with the manifest listing or error
    """
    logger.info(f"Executing upload command: file={cmd.file_path} fragment_size={cmd.fragment_size}")
    owned = store is None
    try:
        if owned:
            store = open_store(config)
        pipeline = TransferPipeline(store, config.get_pipeline_config(cmd.fragment_size), print_fragment_progress)
        manifest = pipeline.upload(cmd.file_path)
    except SplitupError as e:
        return _failure(e)
    finally:
        if owned and store is not None:
            store.close()

    manifest_path = default_manifest_path(cmd.file_path)
    return CommandResult(
        True,
        f"=== All {manifest.fragment_count} fragment(s) uploaded ===\n"
        f"{manifest.listing()}\n"
        f"Manifest saved to: {manifest_path}",
    )


def handle_download(cmd: DownloadCommand, config: Config, store: Optional[ObjectStore] = None) -> CommandResult:
    """
    Handle 'download' command.

    Args:
        cmd: DownloadCommand with manifest path and optional output path
        config: Configuration instance
        store: Optional ObjectStore for dependency injection (testing)

    Returns:
        CommandResult with the verification verdict
    """
    logger.info(f"Executing download command: manifest={cmd.manifest_path} output_path={cmd.output_path}")
    try:
        manifest = TransferManifest.load(cmd.manifest_path)
    except SplitupError as e:
        return _failure(e)

    output_path = (
        Path(cmd.output_path)
        if cmd.output_path
        else Path(cmd.manifest_path).with_name(manifest.source_name + RESTORED_SUFFIX)
    )

    owned = store is None
    try:
        if owned:
            store = open_store(config)
        pipeline = TransferPipeline(store, config.get_pipeline_config(manifest.fragment_size), print_fragment_progress)
        restored = pipeline.restore(manifest, output_path)
    except SplitupError as e:
        return _failure(e)
    finally:
        if owned and store is not None:
            store.close()

    return CommandResult(
        True,
        f"Restored {manifest.source_name} ({format_file_size(manifest.total_size)})\n"
        f"Saved to: {restored.absolute()}\n"
        f"{manifest.digest_algorithm}: {pipeline.restored_digest}\n"
        f"{GREEN}Integrity check passed{RESET}",
    )


def handle_transfer(cmd: TransferCommand, config: Config, store: Optional[ObjectStore] = None) -> CommandResult:
    """
    Handle 'transfer' command: upload, restore, verify.

    Args:
        cmd: TransferCommand with file path and optional fragment size
        config: Configuration instance
        store: Optional ObjectStore for dependency injection (testing)

    Returns:
        CommandResult with both digests and the verdict
    """
    logger.info(f"Executing transfer command: file={cmd.file_path} fragment_size={cmd.fragment_size}")
    owned = store is None
    try:
        if owned:
            store = open_store(config)
        pipeline = TransferPipeline(store, config.get_pipeline_config(cmd.fragment_size), print_fragment_progress)
        result = pipeline.run(cmd.file_path)
    except SplitupError as e:
        return _failure(e)
    finally:
        if owned and store is not None:
            store.close()

    algorithm = result.manifest.digest_algorithm
    return CommandResult(
        result.verified,
        f"{result.manifest.listing()}\n"
        f"Original {algorithm}: {result.source_digest}\n"
        f"Restored {algorithm}: {result.restored_digest}\n"
        f"Restored file: {result.output_path.absolute()}\n"
        f"{GREEN}Integrity check passed, file fully restored{RESET}",
    )


def handle_manifest(cmd: ManifestCommand, config: Optional[Config] = None) -> CommandResult:
    """Handle 'manifest' command."""
    try:
        manifest = TransferManifest.load(cmd.manifest_path)
    except SplitupError as e:
        return _failure(e)
    return CommandResult(True, manifest.listing())


def handle_config(cmd: ConfigCommand, config: Config) -> CommandResult:
    """Handle 'config' command."""
    return CommandResult(
        True,
        f"Config file: {config.config_path}\n{json.dumps(config.masked(), indent=2)}",
    )


def handle_set(cmd: SetCommand, config: Config) -> CommandResult:
    """Handle 'set' command."""
    try:
        value = config.set_value(cmd.key, cmd.value)
    except KeyError:
        return CommandResult(False, f"Error: Unknown configuration key: {cmd.key}")
    except ValueError as e:
        return CommandResult(False, f"Error: {e}")

    shown = '***MASKED***' if cmd.key == 'private_key' else value
    logger.info(f"Configuration updated: {cmd.key}")
    return CommandResult(True, f"{cmd.key} = {shown}")
