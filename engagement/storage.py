# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Persisted storage — namespaced key/value blob store.

One namespace per logical store (dream_entries, mood_entries, profile).
Values are opaque serialized snapshots; this layer never looks inside.

FileBlobStore keeps one JSON file per namespace under the data dir and
writes through .tmp + fsync + rename, so a reader sees either the old
blob or the new one, never a torn write.
"""

import logging
import threading
from pathlib import Path
from typing import Dict, Optional

from core.paths import get_paths
from engagement.schemas import atomic_write_text

logger = logging.getLogger("aurizen.storage")

DREAM_ENTRIES = "dream_entries"
MOOD_ENTRIES = "mood_entries"
PROFILE = "profile"


class BlobStore:
    """Interface: get/put/remove an opaque string per namespace."""

    def get(self, namespace: str) -> Optional[str]:
        raise NotImplementedError

    def put(self, namespace: str, blob: str) -> None:
        raise NotImplementedError

    def remove(self, namespace: str) -> None:
        raise NotImplementedError


class FileBlobStore(BlobStore):
    """Blob store backed by one file per namespace."""

    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root) if root is not None else get_paths().storage_dir
        self._lock = threading.Lock()

    def _path(self, namespace: str) -> Path:
        return self.root / f"{namespace}.json"

    def get(self, namespace: str) -> Optional[str]:
        path = self._path(namespace)
        with self._lock:
            if not path.exists():
                return None
            try:
                return path.read_text()
            except OSError as e:
                logger.warning("Failed to read %s: %s", path, e)
                return None

    def put(self, namespace: str, blob: str) -> None:
        path = self._path(namespace)
        with self._lock:
            atomic_write_text(path, blob)
        logger.debug("Wrote %d bytes to %s", len(blob), path)

    def remove(self, namespace: str) -> None:
        with self._lock:
            self._path(namespace).unlink(missing_ok=True)


class MemoryBlobStore(BlobStore):
    """In-process blob store. Same contract, no disk."""

    def __init__(self):
        self._blobs: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, namespace: str) -> Optional[str]:
        with self._lock:
            return self._blobs.get(namespace)

    def put(self, namespace: str, blob: str) -> None:
        with self._lock:
            self._blobs[namespace] = blob

    def remove(self, namespace: str) -> None:
        with self._lock:
            self._blobs.pop(namespace, None)
