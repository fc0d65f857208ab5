"""
Scramble Settings - Tuning knobs for clip planning, composition and SFX placement
"""
from __future__ import annotations
import os
from dataclasses import dataclass

def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    return default if v is None or v.strip() == "" else int(v)

def _env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    return default if v is None or v.strip() == "" else float(v)

@dataclass(frozen=True)
class ScrambleSettings:
    # Clip lengths (seconds). Short, variable clips keep the output diverse.
    min_clip_sec: float = _env_float("SCRAMBLE_MIN_CLIP_SEC", 1.5)
    max_clip_sec: float = _env_float("SCRAMBLE_MAX_CLIP_SEC", 4.0)
    duration_variance: float = _env_float("SCRAMBLE_VARIANCE", 0.5)

    # Candidate offsets advance by a random step in this range
    step_min_sec: float = _env_float("SCRAMBLE_STEP_MIN_SEC", 1.0)
    step_max_sec: float = _env_float("SCRAMBLE_STEP_MAX_SEC", 3.0)

    # Reshuffle passes allowed in a row without accepting a clip
    max_idle_passes: int = _env_int("SCRAMBLE_MAX_IDLE_PASSES", 2)

    # Picture-in-picture inset from the frame edge
    pip_margin_px: int = _env_int("PIP_MARGIN_PX", 20)

    # One sound effect every N clip transitions
    sfx_every_n_transitions: int = _env_int("SFX_EVERY_N_TRANSITIONS", 3)

scramble_settings = ScrambleSettings()
