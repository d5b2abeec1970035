"""Shared pytest fixtures for all tests."""

import pytest
from pathlib import Path

from cli.config import Config
from pipeline.orchestrator import PipelineConfig
from storage.local import LocalStore


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep SPLITUP_* variables from the developer's shell out of tests."""
    for name in ('SPLITUP_STORE', 'SPLITUP_ENDPOINT', 'SPLITUP_RPC_URL', 'SPLITUP_PRIVATE_KEY'):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Returns:
        Path to temporary .splitup directory
    """
    config_dir = tmp_path / '.splitup'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance using a local store under the temp dir.

    Returns:
        Config instance with temp config file
    """
    config = Config(temp_config_dir / 'config.json')
    config.data['store'] = 'local'
    config.data['local_store_path'] = str(temp_config_dir / 'store')
    return config


@pytest.fixture
def local_store(tmp_path):
    """LocalStore rooted in a temporary directory."""
    return LocalStore(tmp_path / 'store')


@pytest.fixture
def small_config(tmp_path):
    """PipelineConfig with 400-byte fragments and a private work dir."""
    work_dir = tmp_path / 'work'
    work_dir.mkdir()
    return PipelineConfig(fragment_size=400, upload_timeout=5, download_timeout=5, work_dir=work_dir)


@pytest.fixture
def make_source(tmp_path):
    """
    Factory writing a deterministic source file of the requested size.

    Returns:
        Callable (size, name='source.bin') -> Path
    """
    def _make(size: int, name: str = 'source.bin') -> Path:
        path = tmp_path / name
        path.write_bytes(bytes((i * 7 + 3) % 256 for i in range(size)))
        return path

    return _make
