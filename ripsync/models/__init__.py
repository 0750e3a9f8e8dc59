"""Data models for RipSync."""

from ripsync.models.audio_file import AudioFile, ContainerKind
from ripsync.models.config import AppConfig
from ripsync.models.release import CanonicalTrack, Release, SearchResult, SearchResults
from ripsync.models.tags import TagField, TagRecord
from ripsync.models.transcode_state import TranscodeAction, TranscodeOutcome, TranscodeState

__all__ = [
    "AudioFile",
    "ContainerKind",
    "AppConfig",
    "CanonicalTrack",
    "Release",
    "SearchResult",
    "SearchResults",
    "TagField",
    "TagRecord",
    "TranscodeAction",
    "TranscodeOutcome",
    "TranscodeState",
]
