"""Tests for job configuration validation and option enums."""

import pytest

from brollmix.core.enums import JobState, OutputFormat, OverlayPosition
from brollmix.core.exceptions import ConfigurationError
from brollmix.core.scramble_settings import ScrambleSettings
from brollmix.models import job as job_module
from brollmix.models.job import JobConfig
from brollmix.schemas.job import JobCreate


def test_lists_become_tuples_and_blanks_drop() -> None:
    config = JobConfig(user_video_path="/me.mp4", remote_urls=["https://youtu.be/a", "  ", ""])
    assert config.remote_urls == ("https://youtu.be/a",)
    assert config.is_remote
    assert config.sources == ("https://youtu.be/a",)


@pytest.mark.parametrize(
    "kwargs",
    [
        {},
        {"remote_urls": ("https://youtu.be/a",), "local_paths": ("/a.mp4",)},
        {"local_paths": ("/a.mp4",), "min_clip_duration": 0},
        {"local_paths": ("/a.mp4",), "min_clip_duration": 5, "max_clip_duration": 4},
        {"local_paths": ("/a.mp4",), "split_ratio": 1.0},
        {"local_paths": ("/a.mp4",), "pip_scale": 0.0},
        {"local_paths": ("/a.mp4",), "custom_width": -10},
        {"local_paths": ("/a.mp4",), "output_format": "vhs"},
        {"local_paths": ("/a.mp4",), "overlay_position": "middle"},
    ],
)
def test_invalid_configs_are_rejected(kwargs) -> None:
    with pytest.raises(ConfigurationError):
        JobConfig(user_video_path="/me.mp4", **kwargs)


def test_user_video_is_required() -> None:
    with pytest.raises(ConfigurationError):
        JobConfig(user_video_path="", local_paths=("/a.mp4",))


def test_configuration_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        JobConfig(user_video_path="/me.mp4")


@pytest.mark.parametrize("raw", ["topleft", "top_left", "Top Left", "TOP-LEFT"])
def test_overlay_position_parsing_is_lenient(raw) -> None:
    assert OverlayPosition(raw) is OverlayPosition.TOP_LEFT


def test_output_format_is_case_insensitive() -> None:
    assert OutputFormat("TikTok") is OutputFormat.TIKTOK


def test_format_presets() -> None:
    assert OutputFormat.YOUTUBE.preset_size == (1920, 1080)
    assert OutputFormat.TIKTOK.preset_size == (1080, 1920)
    assert OutputFormat.INSTAGRAM.preset_size == (1080, 1350)


def test_terminal_states() -> None:
    assert {s for s in JobState if s.is_terminal} == {JobState.COMPLETE, JobState.FAILED, JobState.CANCELLED}


def test_clip_bounds_default_to_scramble_settings(monkeypatch) -> None:
    monkeypatch.setattr(job_module, "scramble_settings", ScrambleSettings(min_clip_sec=2.0, max_clip_sec=6.0))

    config = JobConfig(user_video_path="/me.mp4", local_paths=("/a.mp4",))
    from_api = JobCreate(user_video_path="/me.mp4", local_broll_paths=["/a.mp4"]).to_config()

    assert (config.min_clip_duration, config.max_clip_duration) == (2.0, 6.0)
    assert (from_api.min_clip_duration, from_api.max_clip_duration) == (2.0, 6.0)


def test_explicit_clip_bounds_win_over_settings(monkeypatch) -> None:
    monkeypatch.setattr(job_module, "scramble_settings", ScrambleSettings(min_clip_sec=2.0, max_clip_sec=6.0))

    config = JobConfig(user_video_path="/me.mp4", local_paths=("/a.mp4",), min_clip_duration=1.0, max_clip_duration=3.0)

    assert (config.min_clip_duration, config.max_clip_duration) == (1.0, 3.0)
