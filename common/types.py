"""Shared data type definitions (Fragment, FragmentFile)."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Fragment:
    """
    One contiguous chunk of the source, in memory.
    """
    index: int
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class FragmentFile:
    """
    A fragment spilled to the pipeline work directory.
    """
    index: int
    path: Path
    size: int
