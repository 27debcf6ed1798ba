"""Tests for the content-addressed blob store."""

import hashlib
import json
from unittest.mock import patch

import pytest

from embedvault.errors import BlobNotFoundError, StorageError
from embedvault.service.content_store import ContentStore


class TestContentStore:
    """Tests for ContentStore class."""

    def test_creates_root_directory(self, tmp_path):
        """Test the storage root is created when missing."""
        root = tmp_path / "a" / "b"

        store = ContentStore(root)

        assert store.root.is_dir()

    def test_put_stores_under_sha256(self, content_store):
        """Test a blob is written to a file named by its hash."""
        payload = b'{"search":"A"}'

        entry_id = content_store.put(payload)

        assert entry_id == hashlib.sha256(payload).hexdigest()
        assert (content_store.root / entry_id).read_bytes() == payload

    def test_put_is_idempotent(self, content_store):
        """Test writing the same bytes twice keeps one identical file."""
        payload = b'{"search":"A"}'

        first = content_store.put(payload)
        mtime = (content_store.root / first).stat().st_mtime_ns
        second = content_store.put(payload)

        assert first == second
        assert (content_store.root / second).stat().st_mtime_ns == mtime
        assert [p.name for p in content_store.root.iterdir()] == [first]

    def test_load_round_trip(self, content_store):
        """Test a stored record decodes back to the same object."""
        record = {"search": "hello", "id": 3}
        entry_id = content_store.put(json.dumps(record).encode("utf-8"))

        assert content_store.load(entry_id) == record
        assert content_store.exists(entry_id)

    def test_missing_blob_raises_not_found(self, content_store):
        """Test reading an absent id raises BlobNotFoundError."""
        missing = "0" * 64

        with pytest.raises(BlobNotFoundError) as exc_info:
            content_store.get(missing)

        assert exc_info.value.entry_id == missing
        assert isinstance(exc_info.value, StorageError)
        assert not content_store.exists(missing)

    def test_invalid_json_blob_raises_storage_error(self, content_store):
        """Test a blob that is not JSON is reported as a storage error."""
        entry_id = content_store.put(b"not json")

        with pytest.raises(StorageError, match="error unmarshaling JSON"):
            content_store.load(entry_id)

    @pytest.mark.parametrize("entry_id", ["", "abc", "../" + "0" * 61, "A" * 64])
    def test_invalid_ids_are_rejected(self, content_store, entry_id):
        """Test only lowercase SHA-256 hex digests map to paths."""
        with pytest.raises(StorageError, match="Invalid content id"):
            content_store.path_for(entry_id)

    def test_sharded_layout(self, tmp_path):
        """Test sharding places blobs under a prefix directory."""
        store = ContentStore(tmp_path, shard_chars=2)

        entry_id = store.put(b"{}")

        assert (tmp_path / entry_id[:2] / entry_id).is_file()
        assert store.load(entry_id) == {}

    def test_invalid_shard_chars(self, tmp_path):
        """Test shard prefix length must be shorter than the hash."""
        with pytest.raises(ValueError):
            ContentStore(tmp_path, shard_chars=64)

    def test_write_failure_raises_storage_error(self, content_store):
        """Test filesystem errors are wrapped and leave no partial blob."""
        with patch("embedvault.service.content_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(StorageError, match="disk full"):
                content_store.put(b'{"search":"A"}')

        assert list(content_store.root.iterdir()) == []
