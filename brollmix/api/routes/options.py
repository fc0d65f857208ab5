from fastapi import APIRouter

from brollmix.core.enums import OutputFormat, OverlayPosition
from brollmix.schemas.options import DependencyStatus, FormatOption, OverlayOption, UrlCheckIn, UrlCheckOut
from brollmix.services.downloader import is_valid_youtube_url
from brollmix.services.editor import check_dependencies

router = APIRouter(prefix="/api", tags=["options"])


@router.get("/options/overlay-positions", response_model=list[OverlayOption])
def overlay_positions():
    return [
        OverlayOption(value=p.value, label=p.menu_label, description=p.description)
        for p in OverlayPosition
    ]


@router.get("/options/output-formats", response_model=list[FormatOption])
def output_formats():
    options = []
    for fmt in OutputFormat:
        width, height = fmt.preset_size
        options.append(
            FormatOption(value=fmt.value, label=fmt.label, width=width, height=height, description=fmt.description)
        )
    return options


@router.get("/dependencies", response_model=DependencyStatus)
def dependencies():
    """ffmpeg/ffprobe availability, yt-dlp version and the encoder jobs will use."""
    return DependencyStatus(**check_dependencies())


@router.post("/validate-url", response_model=UrlCheckOut)
def validate_url(body: UrlCheckIn):
    return UrlCheckOut(valid=is_valid_youtube_url(body.url))
