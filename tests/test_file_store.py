"""
Unit tests for the atomic JSON snapshot store.
"""

import json
import os
import threading
import time
from pathlib import Path
from typing import Dict
from unittest.mock import patch

import pytest

from eprice.models.price import DailyAverageSnapshot
from eprice.storage.file_store import AtomicFileStore


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "cache.json"


@pytest.fixture
def store(store_path):
    store = AtomicFileStore(store_path, Dict[str, int])
    yield store
    store.close()


class TestLoad:
    """Tests for loading snapshots."""

    def test_missing_file_returns_none(self, store):
        """A missing file is an empty start, not an error."""
        assert store.load() is None

    def test_corrupt_file_is_deleted(self, store, store_path):
        """Unparseable content is removed and reported as absent."""
        store_path.write_text("{not json")

        assert store.load() is None
        assert not store_path.exists()

    def test_wrong_shape_is_treated_as_corrupt(self, store, store_path):
        """Valid JSON that does not match the snapshot type is also discarded."""
        store_path.write_text(json.dumps({"a": "not-a-number"}))

        assert store.load() is None
        assert not store_path.exists()

    def test_load_typed_snapshot(self, tmp_path):
        """Snapshots validate into their pydantic model."""
        path = tmp_path / "daily.json"
        path.write_text(json.dumps({"data": {"EE": {"2023-01-01": "0.10"}}}))
        store = AtomicFileStore(path, DailyAverageSnapshot)

        snapshot = store.load()
        store.close()

        assert isinstance(snapshot, DailyAverageSnapshot)
        assert str(snapshot.data["EE"]["2023-01-01"]) == "0.10"


class TestPersist:
    """Tests for background persistence."""

    def test_persist_then_load(self, store, store_path):
        """A flushed persist is visible to the next load."""
        store.persist_async({"a": 1, "b": 2})
        store.flush()

        assert store.load() == {"a": 1, "b": 2}

    def test_no_temp_file_left_behind(self, store, store_path):
        """The temp file is renamed over the target."""
        store.persist_async({"a": 1})
        store.flush()

        assert store_path.exists()
        assert not store.tmp_path.exists()
        assert store.tmp_path.name == "cache.json.tmp"

    def test_last_snapshot_wins(self, store):
        """Snapshots are written in submission order."""
        for value in range(5):
            store.persist_async({"value": value})
        store.flush()

        assert store.load() == {"value": 4}

    def test_creates_parent_directory(self, tmp_path):
        """Missing parent directories are created on first write."""
        path = tmp_path / "nested" / "dir" / "cache.json"
        store = AtomicFileStore(path, Dict[str, int])

        store.persist_async({"a": 1})
        store.close()

        assert path.exists()

    def test_disk_error_is_swallowed(self, tmp_path):
        """Write failures are logged, never raised to the caller."""
        target = tmp_path / "occupied"
        target.mkdir()
        store = AtomicFileStore(target, Dict[str, int])

        store.persist_async({"a": 1})
        store.flush()
        store.close()

        assert target.is_dir()


class TestClear:
    """Tests for deleting the backing file."""

    def test_clear_removes_file(self, store, store_path):
        store.persist_async({"a": 1})
        store.clear_async()
        store.flush()

        assert not store_path.exists()
        assert store.load() is None

    def test_clear_missing_file_is_not_an_error(self, store, store_path):
        store.clear_async()
        store.flush()

        assert not store_path.exists()

    def test_clear_error_is_swallowed(self, tmp_path):
        target = tmp_path / "occupied"
        target.mkdir()
        store = AtomicFileStore(target, Dict[str, int])

        store.clear_async()
        store.close()

        assert target.is_dir()

    def test_operations_after_close_are_dropped(self, store, store_path):
        """Submitting to a closed store neither raises nor writes."""
        store.close()

        store.persist_async({"a": 1})

        assert not store_path.exists()


class TestConcurrentOperations:
    """Tests for stores with several persist workers."""

    def test_last_submitted_snapshot_wins_with_many_workers(self, tmp_path):
        """Older snapshots never overwrite a newer one, whatever the worker scheduling."""
        path = tmp_path / "cache.json"
        store = AtomicFileStore(path, Dict[str, int], max_workers=4)

        for round_number in range(50):
            for value in range(20):
                store.persist_async({"round": round_number, "value": value})
            store.flush()

            assert store.load() == {"round": round_number, "value": 19}

        store.close()

    def test_persist_and_clear_never_overlap(self, tmp_path):
        """Interleaved writes and deletes from several threads run one at a time."""
        path = tmp_path / "cache.json"
        store = AtomicFileStore(path, Dict[str, int], max_workers=4)
        active = []
        overlaps = []
        guard = threading.Lock()
        real_replace = os.replace
        real_unlink = Path.unlink

        def enter():
            with guard:
                active.append(1)
                if len(active) > 1:
                    overlaps.append(len(active))
            time.sleep(0.001)
            with guard:
                active.pop()

        def tracking_replace(src, dst):
            enter()
            real_replace(src, dst)

        def tracking_unlink(self, missing_ok=False):
            if self == path:
                enter()
            real_unlink(self, missing_ok=missing_ok)

        def submitter(worker_id):
            for value in range(10):
                if value % 3 == 0:
                    store.clear_async()
                else:
                    store.persist_async({"worker": worker_id, "value": value})

        with patch("eprice.storage.file_store.os.replace", tracking_replace), \
                patch.object(Path, "unlink", tracking_unlink):
            threads = [threading.Thread(target=submitter, args=(n,)) for n in range(4)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

            store.persist_async({"final": 1})
            store.flush()

        store.close()

        assert overlaps == []
        assert store.load() == {"final": 1}

    def test_clear_after_persist_leaves_no_file(self, tmp_path):
        path = tmp_path / "cache.json"
        store = AtomicFileStore(path, Dict[str, int], max_workers=4)

        for value in range(10):
            store.persist_async({"value": value})
        store.clear_async()
        store.close()

        assert not path.exists()
