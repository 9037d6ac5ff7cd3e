# Copyright (c) 2026 Nenad Vasic. All rights reserved.
# Licensed under the Business Source License 1.1 (BSL-1.1)
# See LICENSE file in the project root for full license text.

"""
AuriZen Asset Downloader — fetch a large model file with progress and cancel.

No resume: every attempt deletes what's at the destination and starts
fresh. On every failure path (auth, HTTP, socket, cancel, verification)
the partial file is removed before the failure is reported, so the
destination either holds a complete non-empty file or nothing.

    downloader = AssetDownloader(credentials=EnvCredentialProvider())
    task = DownloadTask.for_asset(GEMMA3N)
    result = downloader.download(task, on_progress=print)
    if not result.success:
        print(result.failure, result.message)

Failures never escape as exceptions; they come back as a DownloadResult
and through on_complete(False, message).
"""

import asyncio
import logging
import threading
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional

from engagement.assets import ModelAsset
from engagement.credentials import CredentialProvider
from engagement.events import EventBus, Events, bus as default_bus
from engagement.schemas import EngineConfig
from engagement.workers import WorkerPool, get_workers

logger = logging.getLogger("aurizen.downloader")

DEFAULT_CHUNK_SIZE = 8192
DEFAULT_TIMEOUT = 60  # seconds

ProgressCallback = Callable[[int], None]
CompleteCallback = Callable[[bool, Optional[str]], None]


# ============================================================================
# Failure taxonomy
# ============================================================================

class DownloadFailure(str, Enum):
    AUTH_REQUIRED = "auth_required"
    NETWORK = "network"
    CANCELLED = "cancelled"
    VERIFICATION = "verification"


class DownloadError(Exception):
    failure = DownloadFailure.NETWORK


class AuthRequired(DownloadError):
    failure = DownloadFailure.AUTH_REQUIRED


class NetworkFailure(DownloadError):
    failure = DownloadFailure.NETWORK


class DownloadCancelled(DownloadError):
    failure = DownloadFailure.CANCELLED


class VerificationFailed(DownloadError):
    failure = DownloadFailure.VERIFICATION


# ============================================================================
# Task & result
# ============================================================================

@dataclass
class DownloadTask:
    """One download attempt. Transient; the cancel flag is its handle."""
    url: str
    destination: Path
    requires_auth: bool = False
    _cancel: threading.Event = field(default_factory=threading.Event, repr=False)

    @classmethod
    def for_asset(cls, asset: ModelAsset, models_dir: Optional[Path] = None) -> "DownloadTask":
        return cls(url=asset.url, destination=asset.model_path(models_dir), requires_auth=asset.needs_auth)

    def cancel(self) -> None:
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()


@dataclass
class DownloadResult:
    success: bool
    failure: Optional[DownloadFailure] = None
    message: Optional[str] = None
    bytes_received: int = 0


# ============================================================================
# Transport
# ============================================================================

class UrllibResponse:
    """Byte stream + declared length over a urllib response."""

    def __init__(self, resp):
        self._resp = resp
        self.status = resp.status
        length = resp.headers.get("Content-Length")
        self.content_length = int(length) if length and length.isdigit() else None

    def read(self, n: int) -> bytes:
        return self._resp.read(n)

    def close(self) -> None:
        self._resp.close()


class UrllibTransport:
    """Issues one GET. HTTP error statuses raise urllib.error.HTTPError."""

    def open(self, url: str, headers: Dict[str, str], timeout: float) -> UrllibResponse:
        req = urllib.request.Request(url, headers=headers, method="GET")
        return UrllibResponse(urllib.request.urlopen(req, timeout=timeout))


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Could not remove partial file %s: %s", path, e)


# ============================================================================
# Downloader
# ============================================================================

class AssetDownloader:
    """Streams one asset at a time to disk."""

    def __init__(
        self,
        credentials: Optional[CredentialProvider] = None,
        transport=None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        timeout: float = DEFAULT_TIMEOUT,
        bus: Optional[EventBus] = None,
    ):
        self.credentials = credentials
        self.transport = transport or UrllibTransport()
        self.chunk_size = chunk_size
        self.timeout = timeout
        self.bus = bus or default_bus
        self._lock = threading.Lock()
        self._task: Optional[DownloadTask] = None
        self._response = None

    @classmethod
    def from_config(cls, config: EngineConfig, credentials: Optional[CredentialProvider] = None, **kwargs) -> "AssetDownloader":
        return cls(
            credentials=credentials,
            chunk_size=config.download_chunk_size,
            timeout=config.request_timeout,
            **kwargs,
        )

    def cancel(self) -> None:
        """Cancel the in-flight download, if any. Safe to call repeatedly."""
        with self._lock:
            task, response = self._task, self._response
        if task is None or task.cancelled:
            return
        logger.debug("Cancelling download of %s", task.url)
        task.cancel()
        if response is not None:
            try:
                response.close()
            except Exception as e:
                logger.debug("Closing response on cancel: %s", e)

    def download(
        self,
        task: DownloadTask,
        on_progress: Optional[ProgressCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
    ) -> DownloadResult:
        """Blocking download. Always reports through on_complete exactly once."""
        dest = Path(task.destination)
        with self._lock:
            self._task = task
        logger.info("Starting download: %s -> %s", task.url, dest)
        self.bus.emit(Events.DOWNLOAD_STARTED, {"url": task.url, "destination": str(dest)}, source="downloader")

        try:
            received = self._run(task, dest, on_progress)
            result = DownloadResult(success=True, bytes_received=received)
            logger.info("Download completed: %s (%d bytes)", dest, received)
        except DownloadError as e:
            _discard(dest)
            result = DownloadResult(success=False, failure=e.failure, message=str(e))
            logger.error("Download failed (%s): %s", e.failure.value, e)
        except Exception as e:
            _discard(dest)
            result = DownloadResult(success=False, failure=DownloadFailure.NETWORK, message=f"Download error: {e}")
            logger.exception("Download failed with unexpected error")
        finally:
            with self._lock:
                self._task = None
                self._response = None

        if result.success:
            self.bus.emit(Events.DOWNLOAD_COMPLETED, {"destination": str(dest), "bytes": result.bytes_received}, source="downloader")
        else:
            self.bus.emit(Events.DOWNLOAD_FAILED, {"failure": result.failure.value, "message": result.message}, source="downloader")
        if on_complete:
            on_complete(result.success, result.message)
        return result

    async def download_async(
        self,
        task: DownloadTask,
        on_progress: Optional[ProgressCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
        pool: Optional[WorkerPool] = None,
    ) -> DownloadResult:
        """Run download() off-loop; callbacks are delivered on the calling loop."""
        loop = asyncio.get_running_loop()

        def progress(percent: int) -> None:
            if on_progress:
                loop.call_soon_threadsafe(on_progress, percent)

        def complete(success: bool, message: Optional[str]) -> None:
            if on_complete:
                loop.call_soon_threadsafe(on_complete, success, message)

        pool = pool or get_workers().io
        return await pool.submit(self.download, task, progress, complete)

    # ------------------------------------------------------------------

    def _headers(self, task: DownloadTask) -> Dict[str, str]:
        if not task.requires_auth:
            return {}
        token = self.credentials.get_token() if self.credentials else None
        if not token:
            raise AuthRequired("Authentication required. Please set up your access token.")
        logger.debug("Added auth header for download")
        return {"Authorization": f"Bearer {token}"}

    def _open(self, task: DownloadTask, headers: Dict[str, str]):
        try:
            response = self.transport.open(task.url, headers, self.timeout)
        except urllib.error.HTTPError as e:
            raise NetworkFailure(f"Download failed: HTTP {e.code}") from e
        except (urllib.error.URLError, OSError) as e:
            raise NetworkFailure(f"Network error: {getattr(e, 'reason', e)}") from e

        with self._lock:
            self._response = response
        if task.cancelled:
            response.close()
            raise DownloadCancelled("Download cancelled")
        if not 200 <= response.status < 300:
            response.close()
            raise NetworkFailure(f"Download failed: HTTP {response.status}")
        return response

    def _run(self, task: DownloadTask, dest: Path, on_progress: Optional[ProgressCallback]) -> int:
        if dest.exists():
            dest.unlink()
        dest.parent.mkdir(parents=True, exist_ok=True)

        headers = self._headers(task)
        if task.cancelled:
            raise DownloadCancelled("Download cancelled")

        response = self._open(task, headers)
        total = response.content_length
        logger.debug("Content length: %s bytes", total)

        received = 0
        last_percent = -1
        try:
            with open(dest, "wb") as out:
                while True:
                    chunk = response.read(self.chunk_size)
                    if not chunk:
                        break
                    if task.cancelled:
                        raise DownloadCancelled("Download cancelled")

                    out.write(chunk)
                    received += len(chunk)

                    percent = received * 100 // total if total else 0
                    if percent != last_percent:
                        last_percent = percent
                        if on_progress:
                            on_progress(percent)
                        if percent and percent % 10 == 0:
                            logger.debug("Download progress: %d%% (%d/%s bytes)", percent, received, total)
                            self.bus.emit(Events.DOWNLOAD_PROGRESS, {"percent": percent}, source="downloader")
                out.flush()
        except DownloadError:
            raise
        except (OSError, ValueError) as e:
            # A close() from cancel() surfaces here as a read error
            if task.cancelled:
                raise DownloadCancelled("Download cancelled") from e
            raise NetworkFailure(f"Network error: {e}") from e
        finally:
            response.close()

        if task.cancelled:
            raise DownloadCancelled("Download cancelled")
        if not dest.is_file() or dest.stat().st_size == 0:
            raise VerificationFailed("Downloaded file verification failed")
        return received
