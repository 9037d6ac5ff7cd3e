# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
Model assets — what to download, where it lands, how to sample from it.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from core.paths import get_paths

logger = logging.getLogger("aurizen.assets")


@dataclass(frozen=True)
class ModelAsset:
    name: str
    url: str
    license_url: str = ""
    needs_auth: bool = False
    temperature: float = 1.0
    top_k: int = 64
    top_p: float = 0.95

    @property
    def file_name(self) -> str:
        """Last path segment of the URL, query string dropped."""
        segment = Path(urlparse(self.url).path).name
        return segment or f"{self.name}.bin"

    def model_path(self, models_dir: Optional[Path] = None) -> Path:
        return (models_dir or get_paths().models_dir) / self.file_name

    def model_exists(self, models_dir: Optional[Path] = None) -> bool:
        path = self.model_path(models_dir)
        exists = path.is_file() and path.stat().st_size > 0
        logger.debug("Checking model at %s, exists: %s", path, exists)
        return exists


GEMMA3N = ModelAsset(
    name="gemma-3n-E2B-it-int4",
    url="https://huggingface.co/google/gemma-3n-E2B-it-litert-preview/resolve/main/gemma-3n-E2B-it-int4.task?download=true",
    license_url="https://ai.google.dev/gemma/terms",
    needs_auth=True,
    temperature=1.0,
    top_k=64,
    top_p=0.95,
)
