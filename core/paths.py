# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
AuriZen Paths — single source of truth for all data file locations.

Resolution order:
  1. AURIZEN_DATA_DIR environment variable
  2. Default: ~/.aurizen/

Usage:
    from core.paths import get_paths
    p = get_paths()
    p.storage_dir       # ~/.aurizen/storage/
    p.models_dir        # ~/.aurizen/models/

For tests:
    from core.paths import configure
    configure(tmp_path)  # all paths now rooted under tmp_path
"""

import os
import threading
from pathlib import Path
from typing import Optional


class AuriZenPaths:
    """Central registry of every file and directory the pipeline uses."""

    def __init__(self, data_dir: Optional[Path] = None):
        if data_dir is not None:
            self._root = Path(data_dir)
        else:
            env = os.environ.get("AURIZEN_DATA_DIR")
            if env:
                self._root = Path(env).expanduser()
            else:
                self._root = Path.home() / ".aurizen"

    @property
    def data_dir(self) -> Path:
        return self._root

    # ------------------------------------------------------------------
    # Persisted stores (one blob per namespace)
    # ------------------------------------------------------------------
    @property
    def storage_dir(self) -> Path:
        return self._root / "storage"

    # ------------------------------------------------------------------
    # Model assets
    # ------------------------------------------------------------------
    @property
    def models_dir(self) -> Path:
        return self._root / "models"

    # ------------------------------------------------------------------
    # Config & logs
    # ------------------------------------------------------------------
    @property
    def config_file(self) -> Path:
        return self._root / "aurizen-config.json"

    @property
    def log_file(self) -> Path:
        return self._root / "logs" / "aurizen.log"

    def ensure_dirs(self) -> None:
        """Create all required directories."""
        for d in [self.data_dir, self.storage_dir, self.models_dir, self.log_file.parent]:
            d.mkdir(parents=True, exist_ok=True)


# ===========================================================================
# Singleton
# ===========================================================================

_instance: Optional[AuriZenPaths] = None
_lock = threading.Lock()


def get_paths() -> AuriZenPaths:
    """Return the global AuriZenPaths singleton (lazy-init)."""
    global _instance
    with _lock:
        if _instance is None:
            _instance = AuriZenPaths()
        return _instance


def configure(data_dir: Path) -> AuriZenPaths:
    """
    Override the global paths singleton. Used by tests and embedding apps.

    Returns the new instance for convenience.
    """
    global _instance
    with _lock:
        _instance = AuriZenPaths(data_dir=data_dir)
        return _instance


def reset() -> None:
    """Reset singleton so next get_paths() re-reads env."""
    global _instance
    with _lock:
        _instance = None
