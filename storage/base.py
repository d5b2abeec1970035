"""Transfer client interface for content-addressed object stores."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ObjectStore(Protocol):
    """
    Opaque put/get interface to a content-addressed store.

    put() returns the content ID the store assigned to the bytes; storing the
    same bytes again must yield an ID that resolves to identical bytes.
    Every call is bounded by the given timeout in seconds and raises
    TransferError on failure or timeout.
    """

    def put(self, data: bytes, timeout: float) -> str:
        ...

    def get(self, content_id: str, timeout: float) -> bytes:
        ...

    def close(self) -> None:
        ...
