from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional

from brollmix.core.enums import JobState, OutputFormat, OverlayPosition
from brollmix.core.exceptions import ConfigurationError
from brollmix.core.scramble_settings import scramble_settings
from brollmix.models.media import Dimensions

DEFAULT_CUSTOM_WIDTH = 1920
DEFAULT_CUSTOM_HEIGHT = 1080


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class JobConfig:
    """Everything the user picked for one job. Immutable once the job exists."""
    user_video_path: str
    remote_urls: tuple[str, ...] = ()
    local_paths: tuple[str, ...] = ()
    output_format: OutputFormat = OutputFormat.YOUTUBE
    custom_width: Optional[int] = None
    custom_height: Optional[int] = None
    min_clip_duration: Optional[float] = None
    max_clip_duration: Optional[float] = None
    overlay_position: OverlayPosition = OverlayPosition.TOP
    split_ratio: float = 0.5
    pip_scale: float = 0.3
    sfx_folder: Optional[str] = None

    def __post_init__(self):
        # Lists from callers become tuples so the config stays hashable and frozen
        object.__setattr__(self, "remote_urls", tuple(u for u in self.remote_urls if u and u.strip()))
        object.__setattr__(self, "local_paths", tuple(p for p in self.local_paths if p and p.strip()))
        # Unset clip bounds come from SCRAMBLE_MIN_CLIP_SEC / SCRAMBLE_MAX_CLIP_SEC
        if self.min_clip_duration is None:
            object.__setattr__(self, "min_clip_duration", scramble_settings.min_clip_sec)
        if self.max_clip_duration is None:
            object.__setattr__(self, "max_clip_duration", scramble_settings.max_clip_sec)
        try:
            object.__setattr__(self, "output_format", OutputFormat(self.output_format))
            object.__setattr__(self, "overlay_position", OverlayPosition(self.overlay_position))
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        if bool(self.remote_urls) == bool(self.local_paths):
            raise ConfigurationError(
                "Provide B-roll as either remote links or local files (exactly one)"
            )
        if not self.user_video_path:
            raise ConfigurationError("user_video_path is required")
        if not 0 < self.min_clip_duration <= self.max_clip_duration:
            raise ConfigurationError(
                f"Clip bounds must satisfy 0 < min <= max "
                f"(got min={self.min_clip_duration}, max={self.max_clip_duration})"
            )
        if not 0 < self.split_ratio < 1:
            raise ConfigurationError(f"split_ratio must be between 0 and 1 (got {self.split_ratio})")
        if not 0 < self.pip_scale < 1:
            raise ConfigurationError(f"pip_scale must be between 0 and 1 (got {self.pip_scale})")
        for name in ("custom_width", "custom_height"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ConfigurationError(f"{name} must be positive (got {value})")

    @property
    def is_remote(self) -> bool:
        return bool(self.remote_urls)

    @property
    def sources(self) -> tuple[str, ...]:
        return self.remote_urls or self.local_paths

    def dimensions(self) -> Dimensions:
        if self.output_format is OutputFormat.CUSTOM:
            return Dimensions(
                width=self.custom_width or DEFAULT_CUSTOM_WIDTH,
                height=self.custom_height or DEFAULT_CUSTOM_HEIGHT,
            )
        width, height = self.output_format.preset_size
        return Dimensions(width=width, height=height)


@dataclass
class JobProgress:
    stage: str
    percent: float = 0.0
    current_item: Optional[str] = None
    total_items: Optional[int] = None
    completed_items: Optional[int] = None

    def copy(self) -> "JobProgress":
        return replace(self)


@dataclass
class JobRecord:
    """Internal job record. Only the job table touches it."""
    id: str
    config: JobConfig
    seq: int = 0
    state: JobState = JobState.QUEUED
    progress: JobProgress = field(default_factory=lambda: JobProgress(stage="Queued - waiting to start"))
    created_at: datetime = field(default_factory=_utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    output_path: Optional[str] = None
    error: Optional[str] = None
    cancelled: bool = False
