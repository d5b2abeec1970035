"""Content-addressed fragment store in a local directory."""

import hashlib
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from common.exceptions import TransferError
from common.logging_config import get_logger

logger = get_logger(__name__)


class LocalStore:
    """
    Stores fragments under <root>/<2 hex chars>/<content_id>.frag.

    Content IDs are '0x' + SHA-256 of the fragment bytes, so putting the
    same bytes twice returns the same ID and rewrites nothing.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).expanduser()
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info(f"Initialized LocalStore [root={self.root}]")

    @staticmethod
    def content_id_for(data: bytes) -> str:
        return '0x' + hashlib.sha256(data).hexdigest()

    def get_fragment_path(self, content_id: str) -> Path:
        """
        Raises:
            ValueError: If content_id is not a 0x-prefixed SHA-256 hex string
        """
        digest = content_id[2:] if content_id.startswith('0x') else content_id
        if len(digest) != 64 or any(c not in '0123456789abcdef' for c in digest.lower()):
            raise ValueError(f"Malformed content ID: {content_id}")
        digest = digest.lower()
        return self.root / digest[:2] / f"0x{digest}.frag"

    def put(self, data: bytes, timeout: Optional[float] = None) -> str:
        content_id = self.content_id_for(data)
        path = self.get_fragment_path(content_id)

        if path.exists():
            logger.debug(f"Fragment already stored [root={content_id}]")
            return content_id

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix='.part')
            try:
                with os.fdopen(fd, 'wb') as f:
                    f.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise TransferError(f"Cannot store fragment: {e}", content_id=content_id, cause=e) from e

        logger.debug(f"Stored fragment [root={content_id}, size={len(data)}]")
        return content_id

    def get(self, content_id: str, timeout: Optional[float] = None) -> bytes:
        try:
            path = self.get_fragment_path(content_id)
        except ValueError as e:
            raise TransferError(str(e), content_id=content_id, cause=e) from e

        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise TransferError("Fragment not found in store", content_id=content_id, cause=e) from e
        except OSError as e:
            raise TransferError(f"Cannot read fragment: {e}", content_id=content_id, cause=e) from e

    def close(self) -> None:
        pass
