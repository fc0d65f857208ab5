from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int


@dataclass(frozen=True)
class VideoMetadata:
    duration: float            # seconds
    width: int
    height: int
    fps: float


@dataclass(frozen=True)
class SourceClip:
    """A playable B-roll source, local or fetched."""
    path: str
    title: str
    duration: float            # seconds
    source_id: str             # originating URL or local path


@dataclass(frozen=True)
class ClipSpec:
    """A planned sub-interval of a source. Nothing on disk yet."""
    source_index: int
    start: float
    duration: float

    @property
    def end(self) -> float:
        return self.start + self.duration


@dataclass(frozen=True)
class CutClip:
    """An extracted, muted sub-clip on disk."""
    path: str
    source_id: str
    duration: float
