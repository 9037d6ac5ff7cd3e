"""AuriZen engagement pipeline - sessions, downloads, entry logs and analytics."""
from .schemas import MoodEntry, DreamEntry, Profile
from .entry_store import EntryStore
from .stores import Stores
from .generation import GenerationSession, SessionState
from .downloader import AssetDownloader, DownloadTask, DownloadFailure
