from datetime import datetime
from pydantic import BaseModel, Field

from brollmix.core.enums import JobState, OutputFormat, OverlayPosition
from brollmix.models.job import JobConfig


class JobProgressOut(BaseModel):
    stage: str
    percent: float
    current_item: str | None = None
    total_items: int | None = None
    completed_items: int | None = None

    class Config:
        from_attributes = True


class JobStatus(BaseModel):
    """Snapshot of one job for polling. A copy, never a live view."""
    id: str
    state: JobState
    progress: JobProgressOut
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    output_path: str | None = None
    error: str | None = None
    output_format: str
    overlay_position: str


class JobCreate(BaseModel):
    """Request body for starting a job"""
    youtube_links: list[str] = Field(default_factory=list)
    local_broll_paths: list[str] = Field(default_factory=list)
    user_video_path: str
    output_format: OutputFormat = OutputFormat.YOUTUBE
    overlay_position: OverlayPosition = OverlayPosition.TOP
    custom_width: int | None = Field(default=None, gt=0)
    custom_height: int | None = Field(default=None, gt=0)
    min_clip_duration: float | None = Field(default=None, gt=0)
    max_clip_duration: float | None = Field(default=None, gt=0)
    split_ratio: float = 0.5
    pip_scale: float = 0.3
    sfx_folder: str | None = None

    def to_config(self) -> JobConfig:
        return JobConfig(
            user_video_path=self.user_video_path,
            remote_urls=tuple(self.youtube_links),
            local_paths=tuple(self.local_broll_paths),
            output_format=self.output_format,
            custom_width=self.custom_width,
            custom_height=self.custom_height,
            min_clip_duration=self.min_clip_duration,
            max_clip_duration=self.max_clip_duration,
            overlay_position=self.overlay_position,
            split_ratio=self.split_ratio,
            pip_scale=self.pip_scale,
            sfx_folder=self.sfx_folder or None,
        )


class JobCreateResponse(BaseModel):
    job_id: str


class CancelResponse(BaseModel):
    ok: bool = True
