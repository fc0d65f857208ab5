from .job import JobConfig, JobProgress, JobRecord
from .media import ClipSpec, CutClip, Dimensions, SourceClip, VideoMetadata

__all__ = [
    "JobConfig",
    "JobProgress",
    "JobRecord",
    "ClipSpec",
    "CutClip",
    "Dimensions",
    "SourceClip",
    "VideoMetadata",
]
