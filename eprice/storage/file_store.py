"""
JSON snapshot persistence with atomic writes.

A store owns one file. Snapshots are written to a sibling '.tmp' file and
renamed over the target, so a loader only ever sees the last complete
snapshot or nothing. Writes and deletes run on a small background pool and
are serialized by a lock and applied in submission order; their failures
are logged, never raised.
"""

import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Generic, Optional, Set, Type, TypeVar, Union

from pydantic import TypeAdapter

from eprice.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class AtomicFileStore(Generic[T]):
    """Load, persist and clear a single JSON snapshot file."""

    def __init__(self, path: Union[str, Path], snapshot_type: Type[T], max_workers: int = 1):
        self.path = Path(path)
        self.tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        self._adapter = TypeAdapter(snapshot_type)
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=f"persist-{self.path.stem}",
        )
        self._pending: Set[Future] = set()
        self._pending_lock = threading.Lock()
        # Submission counter and the newest operation already applied to disk.
        self._sequence = 0
        self._applied = 0

    def load(self) -> Optional[T]:
        """
        Read and validate the snapshot.

        Returns None when the file is missing or unreadable. A file that
        cannot be parsed is deleted so the next start is clean.
        """
        if not self.path.is_file() or not os.access(self.path, os.R_OK):
            logger.info("No cache file found, starting empty", path=str(self.path))
            return None

        try:
            content = self.path.read_bytes()
        except OSError as e:
            logger.warning("Cache file unreadable, starting empty", path=str(self.path), error=str(e))
            return None

        try:
            return self._adapter.validate_json(content)
        except ValueError as e:
            logger.warning("Corrupt cache file, deleting it", path=str(self.path), error=str(e))
            try:
                self.path.unlink(missing_ok=True)
            except OSError as unlink_error:
                logger.error("Failed to delete corrupt cache file", path=str(self.path), error=str(unlink_error))
            return None

    def persist_async(self, snapshot: T) -> None:
        """Queue a full snapshot write; returns immediately."""
        self._submit(self._persist, snapshot)

    def clear_async(self) -> None:
        """Queue deletion of the backing file; returns immediately."""
        self._submit(self._clear)

    def flush(self, timeout: float = None) -> None:
        """Block until every queued persist/clear has finished."""
        with self._pending_lock:
            pending = set(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def close(self) -> None:
        """Finish queued work and stop the worker pool."""
        self.flush()
        self._executor.shutdown(wait=True)

    def _submit(self, fn, *args) -> None:
        with self._pending_lock:
            self._sequence += 1
            try:
                future = self._executor.submit(fn, self._sequence, *args)
            except RuntimeError as e:
                # Executor already shut down during process exit.
                logger.warning("Cache store closed, dropping disk operation", path=str(self.path), error=str(e))
                return
            self._pending.add(future)
        future.add_done_callback(self._forget)

    def _forget(self, future: Future) -> None:
        with self._pending_lock:
            self._pending.discard(future)

    def _is_stale(self, sequence: int) -> bool:
        """True when a newer operation already reached the disk. Caller holds the lock."""
        if sequence < self._applied:
            logger.debug("Skipping superseded disk operation", path=str(self.path), sequence=sequence)
            return True
        self._applied = sequence
        return False

    def _persist(self, sequence: int, snapshot: T) -> None:
        with self._lock:
            if self._is_stale(sequence):
                return
            try:
                payload = self._adapter.dump_json(snapshot, indent=2)
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.tmp_path, "wb") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(self.tmp_path, self.path)
                logger.debug("Cache persisted", path=str(self.path), bytes=len(payload))
            except Exception as e:
                logger.error("Failed to persist cache", path=str(self.path), error=str(e))

    def _clear(self, sequence: int) -> None:
        with self._lock:
            if self._is_stale(sequence):
                return
            try:
                if self.path.exists():
                    self.path.unlink()
                    logger.info("Cache file deleted", path=str(self.path))
                else:
                    logger.info("Cache file did not exist", path=str(self.path))
            except OSError as e:
                logger.error("Failed to delete cache file", path=str(self.path), error=str(e))
