"""HTTP client for a storage gateway (indexer) fronting the storage network."""

import time
import uuid
from dataclasses import dataclass
from typing import Optional

import httpx

from common.exceptions import TransferError
from common.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class GatewayOptions:
    """Connection and submission options for GatewayStore."""

    endpoint: str
    rpc_url: str = ""
    private_key: str = ""
    expected_replica: int = 1
    skip_tx: bool = False
    max_retries: int = 3
    retry_backoff_multiplier: float = 2
    retry_base_delay: float = 1.0


class GatewayStore:
    """
    ObjectStore backed by the gateway HTTP API.

        POST /fragments          raw bytes -> {"root": "<content id>"}
        GET  /fragments/{root}   -> raw bytes

    5xx responses and network failures are retried with exponential
    backoff, always within the caller's timeout. Puts are safe to retry
    because the store is content-addressed.
    """

    ERROR_MESSAGES = {
        'INVALID_API_KEY': 'Not authenticated. Check the private key in the configuration.',
        'INVALID_SIGNATURE': 'Transaction signature rejected. Check the private key.',
        'INSUFFICIENT_FUNDS': 'Account balance too low to pay the storage fee.',
        'FRAGMENT_NOT_FOUND': 'Fragment not found on the storage network.',
        'FRAGMENT_TOO_LARGE': 'Fragment exceeds the gateway size limit.',
        'STORAGE_FULL': 'Storage capacity exceeded on the storage nodes.',
        'NODES_UNAVAILABLE': 'Not enough storage nodes available for the requested replica count.',
    }

    STATUS_MESSAGES = {
        400: 'Bad request',
        401: 'Not authenticated',
        403: 'Access forbidden',
        404: 'Not found',
        413: 'Fragment too large',
        500: 'Gateway error',
        502: 'Bad gateway',
        503: 'Service unavailable',
        504: 'Gateway timeout',
        507: 'Insufficient storage',
    }

    def __init__(self, options: GatewayOptions, transport: Optional[httpx.BaseTransport] = None):
        """
        Args:
            options: Gateway connection options
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.options = options
        self.session = httpx.Client(base_url=options.endpoint, transport=transport)
        self.request_id = None
        logger.info(f"Initialized GatewayStore [endpoint={options.endpoint}]")

    def _headers(self) -> dict:
        headers = {
            'X-Expected-Replica': str(self.options.expected_replica),
            'X-Skip-Tx': 'true' if self.options.skip_tx else 'false',
        }
        if self.options.rpc_url:
            headers['X-Rpc-Url'] = self.options.rpc_url
        if self.options.private_key:
            headers['Authorization'] = f'Bearer {self.options.private_key}'
        return headers

    def _request_with_retry(self, method: str, endpoint: str, timeout: float, **kwargs) -> httpx.Response:
        """
        Make an HTTP request, retrying 5xx responses and network failures.

        Args:
            method: HTTP method
            endpoint: API endpoint path
            timeout: Overall budget in seconds for all attempts
            **kwargs: Additional arguments passed to httpx

        Returns:
            The first non-5xx response, or the last 5xx once retries or the budget run out

        Raises:
            TransferError: If the budget is exhausted or the last attempt failed in transport
        """
        max_retries = self.options.max_retries
        deadline = time.monotonic() + timeout

        self.request_id = str(uuid.uuid4())
        headers = kwargs.pop('headers', {})
        headers['X-Request-ID'] = self.request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={self.request_id}]")

        last_exception = None
        last_response = None
        for attempt in range(max_retries + 1):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break

            try:
                response = self.session.request(method, endpoint, headers=headers, timeout=remaining, **kwargs)
            except httpx.TransportError as e:
                last_exception, last_response = e, None
                logger.warning(
                    f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                    f"{method} {endpoint} error={type(e).__name__} [request_id={self.request_id}]"
                )
            except httpx.HTTPError as e:
                raise TransferError(f"{method} {endpoint} failed: {e}", cause=e) from e
            else:
                last_exception, last_response = None, response
                logger.debug(
                    f"Response received: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                )
                if response.status_code < 500 or attempt == max_retries:
                    return response
                logger.warning(
                    f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                    f"{method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                )

            if attempt < max_retries:
                delay = self.options.retry_base_delay * self.options.retry_backoff_multiplier ** attempt
                if time.monotonic() + delay >= deadline:
                    break
                time.sleep(delay)

        if last_response is not None:
            return last_response
        if isinstance(last_exception, httpx.TimeoutException) or last_exception is None:
            raise TransferError(f"Timed out after {timeout:.1f}s: {method} {endpoint}", cause=last_exception)
        if isinstance(last_exception, httpx.ConnectError):
            raise TransferError(
                f"Cannot connect to storage gateway at {self.options.endpoint}", cause=last_exception
            ) from last_exception
        raise TransferError(f"{method} {endpoint} failed: {last_exception}", cause=last_exception) from last_exception

    def _format_error(self, response: httpx.Response) -> str:
        """Map an error response to a user-friendly message."""
        try:
            error_data = response.json()
            detail = error_data.get('detail', 'Unknown error')
            code = error_data.get('code', 'UNKNOWN')
        except ValueError:
            detail = response.text if response.text else 'Unknown error'
            code = 'UNKNOWN'

        if code in self.ERROR_MESSAGES:
            return self.ERROR_MESSAGES[code]

        message = self.STATUS_MESSAGES.get(response.status_code, detail)
        return f"{message} (Code: {code})" if code != 'UNKNOWN' else f"{message} (HTTP {response.status_code})"

    def put(self, data: bytes, timeout: float) -> str:
        """
        Upload one fragment and return its root.

        Raises:
            TransferError: On any failure, including timeout
        """
        headers = self._headers()
        headers['Content-Type'] = 'application/octet-stream'

        response = self._request_with_retry('POST', '/fragments', timeout, content=data, headers=headers)

        if response.status_code not in (200, 201):
            raise TransferError(f"Upload failed: {self._format_error(response)}")

        try:
            root = response.json()['root']
        except (ValueError, KeyError, TypeError) as e:
            raise TransferError(f"Gateway returned no root: {response.text[:200]}", cause=e) from e

        if not isinstance(root, str) or not root:
            raise TransferError(f"Gateway returned an invalid root: {root!r}")

        logger.info(f"Fragment uploaded [root={root}, size={len(data)}, request_id={self.request_id}]")
        return root

    def get(self, content_id: str, timeout: float) -> bytes:
        """
        Download one fragment by root.

        Raises:
            TransferError: On any failure, including timeout
        """
        headers = {}
        if self.options.rpc_url:
            headers['X-Rpc-Url'] = self.options.rpc_url

        response = self._request_with_retry('GET', f'/fragments/{content_id}', timeout, headers=headers)

        if response.status_code != 200:
            raise TransferError(f"Download failed: {self._format_error(response)}", content_id=content_id)

        data = response.content
        logger.info(f"Fragment downloaded [root={content_id}, size={len(data)}, request_id={self.request_id}]")
        return data

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
