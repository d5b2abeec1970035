"""Configuration management for the splitup CLI."""

import hashlib
import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Optional

from common.constants import (
    DEFAULT_DIGEST_ALGORITHM,
    DEFAULT_ENDPOINT,
    DEFAULT_LOCAL_STORE_PATH,
    DEFAULT_RPC_URL,
    DOWNLOAD_TIMEOUT_SECONDS,
    FRAGMENT_SIZE_BYTES,
    UPLOAD_TIMEOUT_SECONDS,
)
from common.logging_config import get_logger
from cli.constants import CONFIG_DIR_NAME, CONFIG_FILE_NAME
from cli.utils import parse_size
from pipeline.orchestrator import PipelineConfig
from storage.gateway import GatewayOptions

logger = get_logger(__name__)

STORE_KINDS = ("gateway", "local")
SECRET_KEYS = ("private_key",)


def default_config() -> dict:
    """Built-in defaults, with environment overrides for connection settings."""
    return {
        "store": os.environ.get("SPLITUP_STORE", "gateway"),
        "endpoint": os.environ.get("SPLITUP_ENDPOINT", DEFAULT_ENDPOINT),
        "rpc_url": os.environ.get("SPLITUP_RPC_URL", DEFAULT_RPC_URL),
        "private_key": os.environ.get("SPLITUP_PRIVATE_KEY", ""),
        "expected_replica": 1,
        "skip_tx": False,
        "fragment_size": FRAGMENT_SIZE_BYTES,
        "upload_timeout": UPLOAD_TIMEOUT_SECONDS,
        "download_timeout": DOWNLOAD_TIMEOUT_SECONDS,
        "digest_algorithm": DEFAULT_DIGEST_ALGORITHM,
        "max_retries": 3,
        "retry_backoff_multiplier": 2,
        "local_store_path": DEFAULT_LOCAL_STORE_PATH,
    }


def default_config_path() -> Path:
    return Path.home() / CONFIG_DIR_NAME / CONFIG_FILE_NAME


class Config:
    """Manages CLI configuration stored in a JSON file."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (default ~/.splitup/config.json)
        """
        self.config_path = Path(config_path) if config_path else default_config_path()
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            self.config_path = Path(tempfile.gettempdir()) / CONFIG_DIR_NAME / CONFIG_FILE_NAME
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

        config = default_config()

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("config root must be an object")
                config.update(data)
                return config
            except (ValueError, OSError) as e:
                logger.warning(f"Config file {self.config_path} unreadable ({e}), using defaults")
                backup_path = self.config_path.with_suffix('.json.bak')
                try:
                    shutil.copy(self.config_path, backup_path)
                except OSError:
                    logger.warning(f"Could not back up {self.config_path}")
                return config

        self.data = config
        self.save()
        return config

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save config to {self.config_path}: {e}")

    def set_value(self, key: str, raw: str) -> Any:
        """
        Set a configuration key from its string form and save.

        The value is converted to the type of the key's default.

        Returns:
            The converted value

        Raises:
            KeyError: If the key is unknown
            ValueError: If the value cannot be converted or is out of range
        """
        defaults = default_config()
        if key not in defaults:
            raise KeyError(key)

        if key == 'fragment_size':
            value = parse_size(raw)
        else:
            value = _coerce(raw, defaults[key])
        if key == 'store' and value not in STORE_KINDS:
            raise ValueError(f"store must be one of: {', '.join(STORE_KINDS)}")
        if key in ('fragment_size', 'upload_timeout', 'download_timeout', 'expected_replica') and value <= 0:
            raise ValueError(f"{key} must be positive")
        if key == 'max_retries' and value < 0:
            raise ValueError("max_retries cannot be negative")
        if key == 'digest_algorithm' and value not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported digest algorithm: {value}")

        self.data[key] = value
        self.save()
        return value

    def masked(self) -> dict:
        """Configuration with secrets hidden, for display."""
        shown = dict(self.data)
        for key in SECRET_KEYS:
            if shown.get(key):
                shown[key] = '***MASKED***'
        return shown

    def get_store_kind(self) -> str:
        return self.data.get('store', 'gateway')

    def get_local_store_path(self) -> Path:
        return Path(self.data.get('local_store_path', DEFAULT_LOCAL_STORE_PATH)).expanduser()

    def get_retry_config(self) -> dict:
        """
        Get retry configuration.

        Returns:
            Dictionary with 'max_retries' and 'retry_backoff_multiplier'
        """
        return {
            'max_retries': self.data.get('max_retries', 3),
            'retry_backoff_multiplier': self.data.get('retry_backoff_multiplier', 2),
        }

    def get_gateway_options(self) -> GatewayOptions:
        retry = self.get_retry_config()
        return GatewayOptions(
            endpoint=self.data.get('endpoint', DEFAULT_ENDPOINT),
            rpc_url=self.data.get('rpc_url', ''),
            private_key=self.data.get('private_key', ''),
            expected_replica=int(self.data.get('expected_replica', 1)),
            skip_tx=bool(self.data.get('skip_tx', False)),
            max_retries=int(retry['max_retries']),
            retry_backoff_multiplier=float(retry['retry_backoff_multiplier']),
        )

    def get_pipeline_config(self, fragment_size: Optional[int] = None) -> PipelineConfig:
        """
        Build the settings for one pipeline run.

        Args:
            fragment_size: Overrides the configured fragment size when given
        """
        return PipelineConfig(
            fragment_size=fragment_size or int(self.data.get('fragment_size', FRAGMENT_SIZE_BYTES)),
            upload_timeout=float(self.data.get('upload_timeout', UPLOAD_TIMEOUT_SECONDS)),
            download_timeout=float(self.data.get('download_timeout', DOWNLOAD_TIMEOUT_SECONDS)),
            digest_algorithm=self.data.get('digest_algorithm', DEFAULT_DIGEST_ALGORITHM),
        )


def _coerce(raw: str, default: Any) -> Any:
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in ('true', '1', 'yes', 'on'):
            return True
        if lowered in ('false', '0', 'no', 'off'):
            return False
        raise ValueError(f"Expected a boolean, got {raw!r}")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw
