"""Content-addressed storage for serialized records.

Every blob is stored under the SHA-256 hex digest of its bytes, so the id is
a pure function of content: identical records collapse to one file, and a
rewrite of an existing id never changes what is on disk.
"""

import hashlib
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from embedvault.constants import CONTENT_HASH_LENGTH
from embedvault.errors import BlobNotFoundError, StorageError

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(rf"^[0-9a-f]{{{CONTENT_HASH_LENGTH}}}$")


class ContentStore:
    """Filesystem blob store keyed by content hash.

    Safe for concurrent writers: blobs are written to a temporary file and
    renamed into place, so readers never observe a partial blob.
    """

    def __init__(self, root: str | Path, shard_chars: int = 0) -> None:
        """Open (and create if needed) a store rooted at a directory.

        Args:
            root: Storage root directory
            shard_chars: If > 0, blobs live under root/<id[:shard_chars]>/<id>

        Raises:
            StorageError: If the root directory cannot be created
        """
        if shard_chars < 0 or shard_chars >= CONTENT_HASH_LENGTH:
            raise ValueError(f"shard_chars must be in [0, {CONTENT_HASH_LENGTH})")
        self.root = Path(root).expanduser().absolute()
        self.shard_chars = shard_chars
        try:
            self.root.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Couldn't create embeddings directory {self.root}: {e}") from e

    @staticmethod
    def compute_id(payload: bytes) -> str:
        """Return the hex SHA-256 digest used as the id of payload."""
        return hashlib.sha256(payload).hexdigest()

    def path_for(self, entry_id: str) -> Path:
        """Return the blob path for an id.

        Raises:
            StorageError: If entry_id is not a lowercase SHA-256 hex digest
        """
        if not _ID_PATTERN.match(entry_id):
            raise StorageError(f"Invalid content id: {entry_id!r}")
        if self.shard_chars:
            return self.root / entry_id[: self.shard_chars] / entry_id
        return self.root / entry_id

    def exists(self, entry_id: str) -> bool:
        return self.path_for(entry_id).is_file()

    def put(self, payload: bytes) -> str:
        """Store payload under its content hash.

        Writing bytes that are already stored is a no-op.

        Args:
            payload: Serialized record bytes

        Returns:
            str: The content hash id

        Raises:
            StorageError: If the blob cannot be written
        """
        entry_id = self.compute_id(payload)
        path = self.path_for(entry_id)
        if path.is_file():
            logger.debug(f"Blob {entry_id} already stored")
            return entry_id

        try:
            path.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{entry_id}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "wb") as tmp:
                    tmp.write(payload)
                os.chmod(tmp_name, 0o644)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"error writing JSON to file {path}: {e}") from e

        logger.debug(f"Stored blob {entry_id} ({len(payload)} bytes)")
        return entry_id

    def get(self, entry_id: str) -> bytes:
        """Read the blob stored under entry_id.

        Raises:
            BlobNotFoundError: If no blob exists for entry_id
            StorageError: If the id is invalid or the blob cannot be read
        """
        path = self.path_for(entry_id)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise BlobNotFoundError(entry_id) from e
        except OSError as e:
            raise StorageError(f"error reading data from file {path}: {e}") from e

    def load(self, entry_id: str) -> Any:
        """Read and JSON-decode the blob stored under entry_id.

        Raises:
            StorageError: If the blob is missing, unreadable, or not valid JSON
        """
        payload = self.get(entry_id)
        try:
            return json.loads(payload)
        except ValueError as e:
            raise StorageError(f"error unmarshaling JSON for {entry_id}: {e}") from e
