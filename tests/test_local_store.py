"""Tests for the local content-addressed store."""

import pytest

from common.exceptions import TransferError
from storage.base import ObjectStore
from storage.local import LocalStore


def test_put_returns_sha256_root(local_store):
    """Roots are 0x-prefixed SHA-256 digests."""
    root = local_store.put(b'hello', timeout=1)

    assert root == '0x2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    assert local_store.get(root, timeout=1) == b'hello'


def test_put_same_bytes_twice_is_idempotent(local_store):
    """Storing identical bytes twice yields IDs resolving to identical bytes."""
    first = local_store.put(b'fragment', timeout=1)
    second = local_store.put(b'fragment', timeout=1)

    assert first == second
    assert local_store.get(first, timeout=1) == local_store.get(second, timeout=1) == b'fragment'


def test_fragments_sharded_by_prefix(local_store):
    """Fragments live under a two-character shard directory."""
    root = local_store.put(b'abc', timeout=1)
    path = local_store.get_fragment_path(root)

    assert path.parent.name == root[2:4]
    assert path.exists()
    assert not list(path.parent.glob('*.part'))


def test_get_unknown_root(local_store):
    """Unknown roots raise TransferError."""
    with pytest.raises(TransferError) as exc_info:
        local_store.get('0x' + 'f' * 64, timeout=1)
    assert exc_info.value.content_id == '0x' + 'f' * 64


def test_get_malformed_root(local_store):
    """Roots that are not SHA-256 hex are rejected without touching the disk."""
    with pytest.raises(TransferError):
        local_store.get('../../etc/passwd', timeout=1)


def test_empty_fragment(local_store):
    """Zero-length payloads are storable."""
    root = local_store.put(b'', timeout=1)
    assert local_store.get(root, timeout=1) == b''


def test_satisfies_object_store_protocol(local_store):
    assert isinstance(local_store, ObjectStore)
