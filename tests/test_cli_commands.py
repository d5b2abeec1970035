"""Tests for CLI command handlers."""

import pytest
from unittest.mock import Mock

from cli.commands import (
    handle_config,
    handle_download,
    handle_manifest,
    handle_set,
    handle_transfer,
    handle_upload,
    open_store,
)
from cli.models import (
    ConfigCommand,
    DownloadCommand,
    ManifestCommand,
    SetCommand,
    TransferCommand,
    UploadCommand,
)
from common.exceptions import TransferError
from storage.base import ObjectStore
from storage.gateway import GatewayStore
from storage.local import LocalStore
from tests.fakes import FailingStore, TamperingStore


@pytest.fixture
def source(make_source):
    return make_source(1000, name='report.pdf')


def test_handle_upload_prints_roots(temp_config, local_store, source, capsys):
    """Upload lists one root per fragment and writes the manifest."""
    result = handle_upload(UploadCommand(file_path=str(source), fragment_size=400), temp_config, store=local_store)

    assert result.success
    assert 'All 3 fragment(s) uploaded' in result.message
    assert result.message.count(' root: 0x') == 3
    assert source.with_name('report.pdf.manifest.json').exists()

    printed = capsys.readouterr().out
    assert '[1/3] fragment 00 uploaded' in printed
    assert '[3/3] fragment 02 uploaded' in printed


def test_handle_upload_failure_shows_partial_manifest(temp_config, local_store, source):
    """A failed upload reports the failing index and the fragments already stored."""
    store = FailingStore(local_store, fail_on_put=2)
    result = handle_upload(UploadCommand(file_path=str(source), fragment_size=400), temp_config, store=store)

    assert not result.success
    assert 'fragment 2' in result.message
    assert 'Fragments stored before the failure' in result.message
    assert 'fragment 01 root' in result.message


def test_handle_upload_missing_file(temp_config, local_store, tmp_path):
    result = handle_upload(UploadCommand(file_path=str(tmp_path / 'missing.bin')), temp_config, store=local_store)

    assert not result.success
    assert 'Cannot read source' in result.message


def test_handle_download_restores(temp_config, local_store, source, tmp_path):
    """Download restores next to the manifest by default and verifies."""
    handle_upload(UploadCommand(file_path=str(source), fragment_size=400), temp_config, store=local_store)
    manifest_path = source.with_name('report.pdf.manifest.json')

    result = handle_download(DownloadCommand(manifest_path=str(manifest_path)), temp_config, store=local_store)

    assert result.success
    assert 'Integrity check passed' in result.message
    restored = source.with_name('report.pdf.restored')
    assert restored.read_bytes() == source.read_bytes()


def test_handle_download_tampered(temp_config, local_store, source, tmp_path):
    """Digest mismatch is reported and the output discarded."""
    handle_upload(UploadCommand(file_path=str(source), fragment_size=400), temp_config, store=local_store)
    manifest_path = source.with_name('report.pdf.manifest.json')
    output = tmp_path / 'out.pdf'

    result = handle_download(
        DownloadCommand(manifest_path=str(manifest_path), output_path=str(output)),
        temp_config,
        store=TamperingStore(local_store, tamper_on_get=0),
    )

    assert not result.success
    assert 'Digest mismatch' in result.message
    assert 'discarded' in result.message
    assert not output.exists()


def test_handle_download_bad_manifest(temp_config, tmp_path):
    bad = tmp_path / 'bad.manifest.json'
    bad.write_text('[]')
    mock_store = Mock(spec=ObjectStore)

    result = handle_download(DownloadCommand(manifest_path=str(bad)), temp_config, store=mock_store)

    assert not result.success
    assert 'Invalid manifest' in result.message
    mock_store.get.assert_not_called()


def test_handle_transfer_round_trip(temp_config, local_store, source):
    """Transfer prints both digests and a passing verdict."""
    result = handle_transfer(TransferCommand(file_path=str(source), fragment_size=400), temp_config, store=local_store)

    assert result.success
    assert 'Original sha256' in result.message
    assert 'Restored sha256' in result.message
    assert 'fully restored' in result.message
    assert source.with_name('report.pdf.restored').read_bytes() == source.read_bytes()


def test_handle_transfer_uses_configured_fragment_size(temp_config, local_store, source):
    temp_config.data['fragment_size'] = 250

    result = handle_transfer(TransferCommand(file_path=str(source)), temp_config, store=local_store)

    assert result.success
    assert '4 fragment(s)' in result.message


def test_handle_transfer_store_error(temp_config, source):
    """Transfer errors from a mocked store surface as failed results."""
    mock_store = Mock(spec=ObjectStore)
    mock_store.put.side_effect = TransferError("gateway down")

    result = handle_transfer(TransferCommand(file_path=str(source)), temp_config, store=mock_store)

    assert not result.success
    assert 'gateway down' in result.message
    assert 'fragment 0' in result.message
    mock_store.close.assert_not_called()


def test_handle_manifest(temp_config, local_store, source):
    handle_upload(UploadCommand(file_path=str(source), fragment_size=400), temp_config, store=local_store)

    result = handle_manifest(ManifestCommand(manifest_path=str(source) + '.manifest.json'))

    assert result.success
    assert 'Manifest for report.pdf' in result.message
    assert 'fragment 02 root' in result.message


def test_handle_config_masks_key(temp_config):
    temp_config.data['private_key'] = 'secret-hex'

    result = handle_config(ConfigCommand(), temp_config)

    assert result.success
    assert 'secret-hex' not in result.message
    assert '***MASKED***' in result.message


def test_handle_set(temp_config):
    result = handle_set(SetCommand(key='expected_replica', value='2'), temp_config)
    assert result.success
    assert temp_config.data['expected_replica'] == 2

    result = handle_set(SetCommand(key='private_key', value='abc'), temp_config)
    assert result.success
    assert 'abc' not in result.message


def test_handle_set_errors(temp_config):
    assert not handle_set(SetCommand(key='nope', value='1'), temp_config).success
    assert not handle_set(SetCommand(key='store', value='s3'), temp_config).success


def test_open_store_kinds(temp_config):
    store = open_store(temp_config)
    assert isinstance(store, LocalStore)

    temp_config.data['store'] = 'gateway'
    store = open_store(temp_config)
    assert isinstance(store, GatewayStore)
    store.close()


def test_handle_upload_unknown_digest_algorithm(temp_config, local_store, source):
    """A bad algorithm in the config file fails the command instead of raising."""
    temp_config.data['digest_algorithm'] = 'nope'

    result = handle_upload(UploadCommand(file_path=str(source)), temp_config, store=local_store)

    assert not result.success
    assert 'Unsupported digest algorithm' in result.message


def test_handle_upload_unknown_store_kind(temp_config, source):
    temp_config.data['store'] = 's3'

    result = handle_upload(UploadCommand(file_path=str(source)), temp_config)

    assert not result.success
    assert 'Unknown store kind' in result.message


def test_handle_download_output_is_directory(temp_config, local_store, source, tmp_path):
    handle_upload(UploadCommand(file_path=str(source), fragment_size=400), temp_config, store=local_store)
    manifest_path = source.with_name('report.pdf.manifest.json')
    output = tmp_path / 'restored'
    output.mkdir()

    result = handle_download(
        DownloadCommand(manifest_path=str(manifest_path), output_path=str(output)),
        temp_config,
        store=local_store,
    )

    assert not result.success
    assert 'Cannot write' in result.message
