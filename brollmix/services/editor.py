"""
Media Engine - ffmpeg-python wrapper for probing, cutting, joining and compositing.

Every write overwrites the target. ffmpeg failures surface as MediaError with
ffmpeg's stderr attached.
"""
from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import ffmpeg

from brollmix.core.enums import OverlayPosition
from brollmix.core.exceptions import EmptyInputError, InvalidMediaError, MediaError
from brollmix.core.scramble_settings import scramble_settings
from brollmix.models.media import Dimensions, VideoMetadata

logger = logging.getLogger(__name__)

DEFAULT_FPS = 30.0
DEFAULT_WIDTH = 1920
DEFAULT_HEIGHT = 1080
AUDIO_BITRATE = "192k"


# =============================================================================
# Encoder selection
# =============================================================================

@dataclass(frozen=True)
class EncoderProfile:
    name: str
    output_kwargs: Dict[str, Any] = field(default_factory=dict)
    global_args: Tuple[str, ...] = ()


NVENC = EncoderProfile(
    "h264_nvenc",
    {"vcodec": "h264_nvenc", "preset": "p4", "rc": "vbr", "cq": 23},
)
VAAPI = EncoderProfile(
    "h264_vaapi",
    {"vcodec": "h264_vaapi", "qp": 23},
    ("-vaapi_device", "/dev/dri/renderD128"),
)
VIDEOTOOLBOX = EncoderProfile(
    "h264_videotoolbox",
    {"vcodec": "h264_videotoolbox", "q:v": 65},
)
CPU = EncoderProfile(
    "libx264",
    {"vcodec": "libx264", "preset": "fast", "crf": 23},
)

# Preference order: nvidia > vaapi > videotoolbox > cpu
_HW_ENCODERS = (NVENC, VAAPI, VIDEOTOOLBOX)


_detected_encoder: Optional[EncoderProfile] = None


def detect_encoder() -> EncoderProfile:
    """Pick the fastest H.264 encoder this ffmpeg build offers. Cached per process."""
    global _detected_encoder
    if _detected_encoder is None:
        _detected_encoder = _probe_encoders()
    return _detected_encoder


def _probe_encoders() -> EncoderProfile:
    try:
        result = subprocess.run(
            ["ffmpeg", "-hide_banner", "-encoders"],
            capture_output=True,
            text=True,
            timeout=15,
        )
        listing = result.stdout
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning(f"[editor] Couldn't list ffmpeg encoders, using CPU: {e}")
        return CPU

    for profile in _HW_ENCODERS:
        if profile.name in listing:
            logger.info(f"[editor] Using hardware encoder {profile.name}")
            return profile

    logger.info("[editor] No hardware encoder found, using libx264")
    return CPU


def _stderr_text(err: ffmpeg.Error) -> str:
    raw = err.stderr or b""
    return raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else str(raw)


def _parse_fps(rate: Optional[str]) -> float:
    # ffprobe reports fractions like "30000/1001"
    if rate and "/" in rate:
        num, den = rate.split("/", 1)
        try:
            numerator, denominator = float(num), float(den)
        except ValueError:
            return DEFAULT_FPS
        if denominator > 0:
            return numerator / denominator
    return DEFAULT_FPS


def pip_origin(dims: Dimensions, corner: OverlayPosition, pip_w: int, pip_h: int, margin: int) -> Tuple[int, int]:
    """Top-left pixel of the inset for the given corner."""
    right = dims.width - pip_w - margin
    bottom = dims.height - pip_h - margin
    return {
        OverlayPosition.TOP_LEFT: (margin, margin),
        OverlayPosition.TOP_RIGHT: (right, margin),
        OverlayPosition.BOTTOM_LEFT: (margin, bottom),
        OverlayPosition.BOTTOM_RIGHT: (right, bottom),
    }.get(corner, (margin, margin))


# =============================================================================
# Editor
# =============================================================================

class Editor:
    def __init__(self, encoder: Optional[EncoderProfile] = None, pip_margin: Optional[int] = None):
        self._encoder = encoder
        self.pip_margin = scramble_settings.pip_margin_px if pip_margin is None else pip_margin

    @property
    def encoder(self) -> EncoderProfile:
        if self._encoder is None:
            self._encoder = detect_encoder()
        return self._encoder

    def _encode(self, *streams, output: str, **extra):
        out = ffmpeg.output(*streams, output, **self.encoder.output_kwargs, **extra)
        if self.encoder.global_args:
            out = out.global_args(*self.encoder.global_args)
        return out

    def _run(self, stream, what: str) -> None:
        try:
            ffmpeg.run(stream, overwrite_output=True, quiet=True)
        except ffmpeg.Error as e:
            stderr = _stderr_text(e)
            logger.error(f"[editor] {what} failed: {stderr[-500:]}")
            raise MediaError(f"ffmpeg {what} failed", stderr=stderr) from e
        except OSError as e:
            raise MediaError(f"ffmpeg {what} failed: {e}") from e

    # -------------------------------------------------------------------------
    # Probe
    # -------------------------------------------------------------------------

    def probe(self, path: str) -> VideoMetadata:
        if not os.path.isfile(path):
            raise InvalidMediaError(f"File not found: {path}")
        try:
            info = ffmpeg.probe(path)
        except ffmpeg.Error as e:
            raise InvalidMediaError(f"Not a readable video: {path}", stderr=_stderr_text(e)) from e
        except OSError as e:
            raise InvalidMediaError(f"ffprobe unavailable: {e}") from e

        video = next((s for s in info.get("streams", []) if s.get("codec_type") == "video"), None)
        if video is None:
            raise InvalidMediaError(f"No video stream in {path}")

        raw_duration = info.get("format", {}).get("duration")
        try:
            duration = float(raw_duration)
        except (TypeError, ValueError):
            raise InvalidMediaError(f"No readable duration in {path} (got {raw_duration!r})")
        if duration <= 0:
            raise InvalidMediaError(f"Zero-length video: {path}")

        return VideoMetadata(
            duration=duration,
            width=int(video.get("width") or DEFAULT_WIDTH),
            height=int(video.get("height") or DEFAULT_HEIGHT),
            fps=_parse_fps(video.get("r_frame_rate")),
        )

    # -------------------------------------------------------------------------
    # Cut / concat
    # -------------------------------------------------------------------------

    def build_cut(self, path: str, output: str, start: float, duration: float, mute_audio: bool = True):
        # Seeking on the input is much faster than on the output
        source = ffmpeg.input(path, ss=f"{start:.3f}")
        if mute_audio:
            return self._encode(source.video, output=output, t=f"{duration:.3f}", an=None)
        return self._encode(source, output=output, t=f"{duration:.3f}", acodec="aac")

    def cut(self, path: str, output: str, start: float, duration: float, mute_audio: bool = True) -> str:
        self._run(self.build_cut(path, output, start, duration, mute_audio), "cut")
        return output

    def build_concat(self, list_path: str, output: str):
        return ffmpeg.input(list_path, f="concat", safe=0).output(output, c="copy")

    def concat(self, paths: Sequence[str], output: str) -> str:
        """Join clips with the concat demuxer. Streams are copied, not re-encoded."""
        if not paths:
            raise EmptyInputError("No clips to join")

        list_path = os.path.join(os.path.dirname(os.path.abspath(output)), "concat_list.txt")
        with open(list_path, "w", encoding="utf-8") as f:
            for p in paths:
                escaped = os.path.abspath(p).replace("'", "'\\''")
                f.write(f"file '{escaped}'\n")

        try:
            self._run(self.build_concat(list_path, output), "concat")
        finally:
            try:
                os.remove(list_path)
            except OSError:
                logger.debug(f"[editor] Couldn't remove {list_path}")
        return output

    # -------------------------------------------------------------------------
    # Composites
    # -------------------------------------------------------------------------

    def build_split(self, top: str, bottom: str, output: str, dims: Dimensions, ratio: float):
        top_h = int(dims.height * ratio)
        bottom_h = dims.height - top_h

        top_in = ffmpeg.input(top)
        bottom_in = ffmpeg.input(bottom)
        top_v = top_in.video.filter("scale", dims.width, top_h).filter("setsar", 1)
        bottom_v = bottom_in.video.filter("scale", dims.width, bottom_h).filter("setsar", 1)
        stacked = ffmpeg.filter([top_v, bottom_v], "vstack", inputs=2)

        # Audio from the bottom input, if it has any
        return self._encode(stacked, bottom_in["a?"], output=output, acodec="aac", audio_bitrate=AUDIO_BITRATE)

    def composite_split(self, top: str, bottom: str, output: str, dims: Dimensions, ratio: float) -> str:
        self._run(self.build_split(top, bottom, output, dims, ratio), "split composite")
        return output

    def build_pip(self, main: str, overlay: str, output: str, dims: Dimensions,
                  corner: OverlayPosition, scale: float):
        pip_w = int(dims.width * scale)
        pip_h = int(dims.height * scale)
        x, y = pip_origin(dims, corner, pip_w, pip_h, self.pip_margin)

        main_in = ffmpeg.input(main)
        overlay_in = ffmpeg.input(overlay)
        main_v = main_in.video.filter("scale", dims.width, dims.height).filter("setsar", 1)
        pip_v = overlay_in.video.filter("scale", pip_w, pip_h).filter("setsar", 1)
        combined = ffmpeg.overlay(main_v, pip_v, x=x, y=y)

        return self._encode(combined, main_in["a?"], output=output, acodec="aac", audio_bitrate=AUDIO_BITRATE)

    def composite_pip(self, main: str, overlay: str, output: str, dims: Dimensions,
                      corner: OverlayPosition, scale: float) -> str:
        self._run(self.build_pip(main, overlay, output, dims, corner, scale), "pip composite")
        return output

    def build_side_by_side(self, left: str, right: str, output: str, dims: Dimensions, ratio: float):
        left_w = int(dims.width * ratio)
        right_w = dims.width - left_w

        left_in = ffmpeg.input(left)
        right_in = ffmpeg.input(right)
        left_v = left_in.video.filter("scale", left_w, dims.height).filter("setsar", 1)
        right_v = right_in.video.filter("scale", right_w, dims.height).filter("setsar", 1)
        stacked = ffmpeg.filter([left_v, right_v], "hstack", inputs=2)

        return self._encode(stacked, right_in["a?"], output=output, acodec="aac", audio_bitrate=AUDIO_BITRATE)

    def composite_side_by_side(self, left: str, right: str, output: str, dims: Dimensions, ratio: float) -> str:
        self._run(self.build_side_by_side(left, right, output, dims, ratio), "side-by-side composite")
        return output

    # -------------------------------------------------------------------------
    # Sound effects
    # -------------------------------------------------------------------------

    def build_sfx(self, video: str, events: Sequence[Tuple[float, str]], output: str):
        main_in = ffmpeg.input(video)
        delayed: List = []
        for timestamp, sfx_path in events:
            delay_ms = int(timestamp * 1000)
            delayed.append(ffmpeg.input(sfx_path).audio.filter("adelay", f"{delay_ms}|{delay_ms}"))

        sfx_mix = ffmpeg.filter(delayed, "amix", inputs=len(delayed))
        mixed = ffmpeg.filter([main_in.audio, sfx_mix], "amix", inputs=2, duration="first")
        return ffmpeg.output(main_in.video, mixed, output, vcodec="copy", acodec="aac")

    def add_sfx(self, video: str, events: Sequence[Tuple[float, str]], output: str) -> str:
        """Mix sound effects into the video's audio at the given timestamps."""
        if not events:
            shutil.copyfile(video, output)
            return output
        self._run(self.build_sfx(video, events, output), "sfx mix")
        return output


def check_dependencies() -> Dict[str, Any]:
    """Which external tools are available, for the dependency check endpoint."""
    import yt_dlp.version

    ffmpeg_ok = shutil.which("ffmpeg") is not None and shutil.which("ffprobe") is not None
    return {
        "ffmpeg_installed": ffmpeg_ok,
        "ytdlp_version": yt_dlp.version.__version__,
        "all_good": ffmpeg_ok,
        "gpu_encoder": detect_encoder().name if ffmpeg_ok else CPU.name,
    }
