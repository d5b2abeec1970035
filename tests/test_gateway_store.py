"""Unit tests for GatewayStore."""

from dataclasses import replace

import pytest
import httpx

from common.exceptions import TransferError
from storage.gateway import GatewayOptions, GatewayStore


@pytest.fixture
def options():
    return GatewayOptions(
        endpoint='http://gateway.test',
        rpc_url='http://rpc.test',
        private_key='deadbeef' * 8,
        expected_replica=2,
        skip_tx=False,
        max_retries=2,
        retry_backoff_multiplier=2,
        retry_base_delay=0,
    )


@pytest.fixture
def blob_server():
    """In-memory gateway keyed by fake roots; records every request."""
    blobs = {}
    requests = []

    def handler(request):
        requests.append(request)
        if request.url.path == '/fragments' and request.method == 'POST':
            root = '0x' + f'{len(blobs):064x}'
            blobs[root] = request.content
            return httpx.Response(201, json={'root': root})
        if request.url.path.startswith('/fragments/') and request.method == 'GET':
            root = request.url.path.rsplit('/', 1)[1]
            if root not in blobs:
                return httpx.Response(404, json={'detail': 'no such root', 'code': 'FRAGMENT_NOT_FOUND'})
            return httpx.Response(200, content=blobs[root])
        return httpx.Response(404)

    return handler, blobs, requests


def make_store(options, handler):
    return GatewayStore(options, transport=httpx.MockTransport(handler))


def test_put_and_get(options, blob_server):
    """Fragments round-trip through the gateway."""
    handler, blobs, _ = blob_server
    store = make_store(options, handler)

    root = store.put(b'payload', timeout=5)

    assert root in blobs
    assert store.get(root, timeout=5) == b'payload'


def test_put_sends_submission_headers(options, blob_server):
    """Credential, RPC URL, replica count and tx flag go out as headers."""
    handler, _, requests = blob_server
    store = make_store(options, handler)

    store.put(b'payload', timeout=5)

    sent = requests[0].headers
    assert sent['Authorization'] == f"Bearer {options.private_key}"
    assert sent['X-Rpc-Url'] == 'http://rpc.test'
    assert sent['X-Expected-Replica'] == '2'
    assert sent['X-Skip-Tx'] == 'false'
    assert sent['X-Request-ID'] == store.request_id


def test_get_does_not_send_credential(options, blob_server):
    handler, _, requests = blob_server
    store = make_store(options, handler)
    root = store.put(b'payload', timeout=5)

    store.get(root, timeout=5)

    assert 'Authorization' not in requests[-1].headers


def test_get_unknown_root_maps_error_code(options, blob_server):
    """Gateway error codes become friendly messages."""
    handler, _, _ = blob_server
    store = make_store(options, handler)

    with pytest.raises(TransferError) as exc_info:
        store.get('0xmissing', timeout=5)

    assert 'Fragment not found' in str(exc_info.value)
    assert exc_info.value.content_id == '0xmissing'


def test_put_client_error_not_retried(options):
    """4xx responses fail immediately."""
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(402, json={'detail': 'broke', 'code': 'INSUFFICIENT_FUNDS'})

    store = make_store(options, handler)
    with pytest.raises(TransferError) as exc_info:
        store.put(b'x', timeout=5)

    assert len(calls) == 1
    assert 'balance too low' in str(exc_info.value)


def test_put_retries_server_errors(options):
    """5xx responses are retried until one succeeds."""
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503)
        return httpx.Response(201, json={'root': '0xok'})

    store = make_store(options, handler)
    assert store.put(b'x', timeout=5) == '0xok'
    assert len(calls) == 3


def test_put_server_error_after_retries(options):
    """The last 5xx is reported once retries are exhausted."""
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, json={'detail': 'boom'})

    store = make_store(options, handler)
    with pytest.raises(TransferError) as exc_info:
        store.put(b'x', timeout=5)

    assert len(calls) == options.max_retries + 1
    assert 'Gateway error' in str(exc_info.value)


def test_connect_error_becomes_transfer_error(options):
    """Network failures surface as TransferError after retries."""
    def handler(request):
        raise httpx.ConnectError('refused', request=request)

    store = make_store(options, handler)
    with pytest.raises(TransferError) as exc_info:
        store.put(b'x', timeout=5)

    assert 'Cannot connect' in str(exc_info.value)
    assert isinstance(exc_info.value.cause, httpx.ConnectError)


def test_timeout_becomes_transfer_error(options):
    """A timed-out request is a failure, not a silent skip."""
    def handler(request):
        raise httpx.ReadTimeout('slow', request=request)

    store = make_store(options, handler)
    with pytest.raises(TransferError) as exc_info:
        store.get('0xroot', timeout=5)

    assert 'Timed out' in str(exc_info.value)


def test_put_without_root_in_response(options):
    def handler(request):
        return httpx.Response(201, json={'tx': '0xabc'})

    store = make_store(options, handler)
    with pytest.raises(TransferError, match='no root'):
        store.put(b'x', timeout=5)


def test_non_json_error_body(options):
    def handler(request):
        return httpx.Response(413, text='too big')

    store = make_store(options, handler)
    with pytest.raises(TransferError, match='Fragment too large'):
        store.put(b'x', timeout=5)


def test_read_error_becomes_transfer_error(options):
    """Connection resets mid-request are retried, then surface as TransferError."""
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ReadError('connection reset', request=request)

    store = make_store(options, handler)
    with pytest.raises(TransferError) as exc_info:
        store.put(b'x', timeout=5)

    assert len(calls) == options.max_retries + 1
    assert isinstance(exc_info.value.cause, httpx.ReadError)


def test_read_error_then_success_is_retried(options):
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            raise httpx.ReadError('connection reset', request=request)
        return httpx.Response(201, json={'root': '0xok'})

    store = make_store(options, handler)
    assert store.put(b'x', timeout=5) == '0xok'
    assert len(calls) == 2


def test_server_error_reported_when_backoff_exceeds_budget(options):
    """A 5xx whose backoff would overrun the deadline is reported as that 5xx."""
    slow_backoff = replace(options, retry_base_delay=10)
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(503)

    store = make_store(slow_backoff, handler)
    with pytest.raises(TransferError) as exc_info:
        store.put(b'x', timeout=5)

    assert len(calls) == 1
    assert 'Service unavailable' in str(exc_info.value)
    assert 'Timed out' not in str(exc_info.value)
