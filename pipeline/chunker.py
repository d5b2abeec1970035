"""Splits a source byte stream into ordered fixed-size fragments."""

from pathlib import Path
from typing import BinaryIO, Iterator, Union

from common.constants import FRAGMENT_FILE_TEMPLATE
from common.exceptions import SourceReadError
from common.logging_config import get_logger
from common.types import Fragment, FragmentFile

logger = get_logger(__name__)


def fragment_count(total_size: int, chunk_size: int) -> int:
    """Number of fragments a source of total_size bytes splits into."""
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return -(-total_size // chunk_size)


def split(source: BinaryIO, chunk_size: int, name: str = "<stream>") -> Iterator[Fragment]:
    """
    Yield fragments of exactly chunk_size bytes, the last one possibly shorter.

    Short reads (pipes, sockets) are topped up so that only the final
    fragment can be smaller than chunk_size. End of input is never emitted
    as a fragment.

    Args:
        source: Binary stream to read from
        chunk_size: Maximum fragment size in bytes, must be > 0
        name: Source name used in error messages

    Yields:
        Fragment objects with consecutive indexes starting at 0

    Raises:
        ValueError: If chunk_size is not positive
        SourceReadError: If a read fails; fragments already yielded remain valid
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    index = 0
    while True:
        try:
            data = _read_full(source, chunk_size)
        except OSError as e:
            raise SourceReadError(name, index, e) from e

        if not data:
            break

        yield Fragment(index=index, data=data)
        index += 1

        if len(data) < chunk_size:
            break


def _read_full(source: BinaryIO, size: int) -> bytes:
    data = source.read(size)
    if not data or len(data) == size:
        return data

    parts = [data]
    remaining = size - len(data)
    while remaining > 0:
        more = source.read(remaining)
        if not more:
            break
        parts.append(more)
        remaining -= len(more)
    return b''.join(parts)


def split_file(source_path: Union[str, Path], dst_dir: Union[str, Path], chunk_size: int) -> list[FragmentFile]:
    """
    Split a file on disk into fragment files inside dst_dir.

    Fragment files are named fragment_000.dat, fragment_001.dat, ...

    Returns:
        FragmentFile records in index order

    Raises:
        SourceReadError: If the source cannot be opened or read
        OSError: If a fragment file cannot be written
    """
    source_path = Path(source_path)
    dst_dir = Path(dst_dir)

    try:
        f = open(source_path, 'rb')
    except OSError as e:
        raise SourceReadError(str(source_path), None, e) from e

    files = []
    with f:
        for fragment in split(f, chunk_size, name=str(source_path)):
            frag_path = dst_dir / FRAGMENT_FILE_TEMPLATE.format(index=fragment.index)
            frag_path.write_bytes(fragment.data)
            files.append(FragmentFile(index=fragment.index, path=frag_path, size=fragment.size))
            logger.debug(f"Wrote fragment {fragment.index} ({fragment.size} bytes) to {frag_path}")

    logger.info(f"Split {source_path.name} into {len(files)} fragment(s) of up to {chunk_size} bytes")
    return files
