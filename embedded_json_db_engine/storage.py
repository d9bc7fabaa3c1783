from __future__ import annotations
import json
import logging
import os
import tempfile
import threading
import weakref
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Sequence

from .errors import CorruptStoreError
from .utils import json_default

logger = logging.getLogger(__name__)

_LOCKS: "weakref.WeakValueDictionary[str, threading.RLock]" = weakref.WeakValueDictionary()
_LOCKS_GUARD = threading.Lock()

def path_lock(path: str | Path) -> threading.RLock:
    """
    Process-wide re-entrant lock for one resolved file path.
    The registry holds it weakly; stores keep it alive while they exist.
    """
    key = os.path.abspath(os.fspath(path))
    with _LOCKS_GUARD:
        lock = _LOCKS.get(key)
        if lock is None:
            lock = threading.RLock()
            _LOCKS[key] = lock
        return lock


class JsonFileStore:
    """
    Один JSON-массив документов в одном файле.

    Every write replaces the whole file: the new content goes to a temp file in
    the same directory, is flushed (and fsynced) and then renamed over the target.

    No cross-process locking: two processes writing the same file can lose updates.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        indent: int | None = None,
        ensure_ascii: bool = False,
        fsync: bool = True,
    ) -> None:
        self.path = Path(path)
        self.indent = indent
        self.ensure_ascii = ensure_ascii
        self.fsync = fsync
        self._lock = path_lock(self.path)

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def exists(self) -> bool:
        return self.path.is_file()

    def ensure_exists(self) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self.path.exists():
                return
            self.write_all([])
            logger.info(f"Created empty collection file {self.path}")

    def read_all(self) -> List[Dict[str, Any]]:
        try:
            with self._lock:
                with open(self.path, "r", encoding="utf-8") as f:
                    text = f.read()
            data = json.loads(text)
        except UnicodeDecodeError as e:
            raise CorruptStoreError(f"{self.path}: not valid UTF-8 ({e})") from e
        except json.JSONDecodeError as e:
            raise CorruptStoreError(f"{self.path}: not valid JSON ({e})") from e
        if not isinstance(data, list):
            raise CorruptStoreError(f"{self.path}: expected a JSON array, got {type(data).__name__}")
        for i, item in enumerate(data):
            if not isinstance(item, dict):
                raise CorruptStoreError(f"{self.path}: element {i} is not an object")
        return data

    def write_all(self, docs: Sequence[Dict[str, Any]]) -> None:
        payload = json.dumps(
            list(docs),
            ensure_ascii=self.ensure_ascii,
            indent=self.indent,
            default=json_default,
        )
        with self._lock:
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                    f.flush()
                    if self.fsync:
                        os.fsync(f.fileno())
                self.replace_file(tmp_path)
            except BaseException:
                try:
                    os.unlink(tmp_path)
                except FileNotFoundError:
                    pass
                raise
        logger.debug(f"Wrote {len(docs)} documents to {self.path}")

    def replace_file(self, tmp_path: str) -> None:
        os.replace(tmp_path, self.path)
        if self.fsync and hasattr(os, "O_DIRECTORY"):
            dir_fd = os.open(str(self.path.parent), os.O_RDONLY | os.O_DIRECTORY)
            try:
                os.fsync(dir_fd)
            finally:
                os.close(dir_fd)

    def delete(self) -> bool:
        with self._lock:
            try:
                self.path.unlink()
            except FileNotFoundError:
                return False
            return True
