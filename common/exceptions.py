"""Custom exception classes for the transfer pipeline."""

from typing import Optional


class SplitupError(Exception):
    """
    Base exception class for all pipeline errors.
    """
    pass


class SourceReadError(SplitupError):
    """
    Raised when the source file cannot be read or is truncated mid-read.
    """

    def __init__(self, path: str, index: Optional[int] = None, cause: Optional[BaseException] = None):
        self.path = path
        self.index = index
        self.cause = cause
        where = f" at fragment {index}" if index is not None else ""
        super().__init__(f"Cannot read source {path}{where}: {cause}")


class TransferError(SplitupError):
    """
    Raised when a put or get against the object store fails, including timeouts.

    When raised by the pipeline, `manifest` holds the entries recorded before
    the failure so already-stored fragments can still be inspected.
    """

    def __init__(
        self,
        message: str,
        index: Optional[int] = None,
        content_id: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.message = message
        self.index = index
        self.content_id = content_id
        self.cause = cause
        self.manifest = None
        super().__init__(self._format())

    def _format(self) -> str:
        parts = []
        if self.index is not None:
            parts.append(f"fragment {self.index}")
        if self.content_id:
            parts.append(f"root {self.content_id}")
        prefix = f"[{', '.join(parts)}] " if parts else ""
        return f"{prefix}{self.message}"

    def with_index(self, index: int) -> 'TransferError':
        """Return the same error tagged with the fragment index it failed on."""
        self.index = index
        self.args = (self._format(),)
        return self


class ManifestIncompleteError(SplitupError):
    """
    Raised when a manifest records fewer content IDs than fragments.
    """

    def __init__(self, expected: int, recorded: int):
        self.expected = expected
        self.recorded = recorded
        super().__init__(
            f"Manifest incomplete: {recorded} of {expected} fragments have a content ID"
        )


class IntegrityMismatchError(SplitupError):
    """
    Raised when the digest of the reassembled file differs from the source digest.
    """

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Digest mismatch: expected {expected}, got {actual}")


class ManifestFormatError(SplitupError):
    """
    Raised when a manifest file cannot be parsed.
    """
    pass


class ConfigurationError(SplitupError, ValueError):
    """
    Raised when pipeline or store settings are invalid.
    """
    pass


class OutputWriteError(SplitupError):
    """
    Raised when the manifest or restored file cannot be written.
    """

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        super().__init__(f"Cannot write {path}: {cause}")
