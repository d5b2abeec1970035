"""Whole-file digest calculation for integrity verification."""

import hashlib
from pathlib import Path
from typing import BinaryIO, Union

from common.constants import DEFAULT_DIGEST_ALGORITHM, READ_BLOCK_SIZE


def digest(stream: BinaryIO, algorithm: str = DEFAULT_DIGEST_ALGORITHM) -> str:
    """
    Compute the digest of a byte stream without buffering it whole.

    Args:
        stream: Binary file-like object positioned at the start of the data
        algorithm: Any hashlib algorithm name

    Returns:
        Hexadecimal digest string
    """
    calculator = IncrementalDigest(algorithm)
    while True:
        block = stream.read(READ_BLOCK_SIZE)
        if not block:
            break
        calculator.update(block)
    return calculator.finalize()


def file_digest(path: Union[str, Path], algorithm: str = DEFAULT_DIGEST_ALGORITHM) -> str:
    """
    Compute the digest of a file on disk.

    Raises:
        OSError: If the file cannot be opened or read
    """
    with open(path, 'rb') as f:
        return digest(f, algorithm)


class IncrementalDigest:
    """
    Calculate a digest incrementally for streaming data.

    Usage:
        calculator = IncrementalDigest()
        calculator.update(block1)
        calculator.update(block2)
        final_digest = calculator.finalize()
    """

    def __init__(self, algorithm: str = DEFAULT_DIGEST_ALGORITHM):
        """
        Raises:
            ValueError: If the algorithm is not known to hashlib
        """
        self.algorithm = algorithm
        self._hasher = hashlib.new(algorithm)
        self._finalized = False

    def update(self, data: bytes) -> None:
        if self._finalized:
            raise ValueError("Cannot update after finalization")
        self._hasher.update(data)

    def finalize(self) -> str:
        self._finalized = True
        return self._hasher.hexdigest()
