from pydantic import BaseModel


class OverlayOption(BaseModel):
    value: str
    label: str
    description: str


class FormatOption(BaseModel):
    value: str
    label: str
    width: int
    height: int
    description: str


class DependencyStatus(BaseModel):
    ffmpeg_installed: bool
    ytdlp_version: str | None = None
    all_good: bool
    gpu_encoder: str


class UrlCheckIn(BaseModel):
    url: str


class UrlCheckOut(BaseModel):
    valid: bool
