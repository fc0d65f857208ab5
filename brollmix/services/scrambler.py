"""
Clip Planner (Scrambler)
Decide which sub-intervals of which B-roll sources to cut, and in what order.

Clips stay short and variable, positions are drawn across every source and
shuffled, and no source interval is ever used twice.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from brollmix.core.exceptions import ConfigurationError
from brollmix.models.media import ClipSpec, SourceClip

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScrambleConfig:
    min_clip_duration: float = 1.5
    max_clip_duration: float = 4.0
    duration_variance: float = 0.5      # 0-1, share of (max - min) used as jitter
    randomize_order: bool = True
    step_range: Tuple[float, float] = (1.0, 3.0)
    max_idle_passes: int = 2

    def __post_init__(self):
        if not 0 < self.min_clip_duration <= self.max_clip_duration:
            raise ConfigurationError(
                f"Clip bounds must satisfy 0 < min <= max "
                f"(got min={self.min_clip_duration}, max={self.max_clip_duration})"
            )
        if not 0 <= self.duration_variance <= 1:
            raise ConfigurationError(f"duration_variance must be within [0, 1] (got {self.duration_variance})")
        step_lo, step_hi = self.step_range
        if not 0 < step_lo <= step_hi:
            raise ConfigurationError(f"step_range must be positive and ordered (got {self.step_range})")
        if self.max_idle_passes < 1:
            raise ConfigurationError("max_idle_passes must be at least 1")


def _overlaps(start: float, end: float, used: Sequence[Tuple[float, float]]) -> bool:
    # Half-open intervals: touching ends don't overlap
    return any(start < u_end and end > u_start for u_start, u_end in used)


def candidate_positions(
    sources: Sequence[SourceClip],
    config: ScrambleConfig,
    rng: random.Random,
) -> List[Tuple[int, float]]:
    """
    Every (source index, start offset) worth trying. Denser than the final
    selection so the sampler has room to dodge overlaps.
    """
    step_lo, step_hi = config.step_range
    positions: List[Tuple[int, float]] = []

    for idx, source in enumerate(sources):
        # Too short to yield even one clip
        if source.duration < config.min_clip_duration:
            logger.warning(f"[scrambler] Skipping {source.title} - too short ({source.duration:.1f}s)")
            continue

        pos = 0.0
        while pos + config.min_clip_duration <= source.duration:
            positions.append((idx, pos))
            pos += rng.uniform(step_lo, step_hi)

    return positions


def draw_duration(config: ScrambleConfig, rng: random.Random) -> float:
    """Centered on the middle of [min, max] with uniform jitter, clamped to the bounds."""
    lo, hi = config.min_clip_duration, config.max_clip_duration
    base = (lo + hi) / 2.0
    spread = (hi - lo) * config.duration_variance
    duration = base + rng.uniform(-spread, spread)
    return max(lo, min(hi, duration))


def plan_clips(
    sources: Sequence[SourceClip],
    target_duration: float,
    config: Optional[ScrambleConfig] = None,
    rng: Optional[random.Random] = None,
) -> List[ClipSpec]:
    """
    Plan clips until their total reaches target_duration or no more fit.

    Args:
        sources: B-roll sources, indexed by ClipSpec.source_index
        target_duration: Seconds of B-roll needed (the user video length)
        config: Clip bounds and sampling behaviour
        rng: Random source; pass a seeded one for reproducible plans

    Returns:
        Accepted ClipSpecs in cut order. The total may fall short of the
        target when the sources can't cover it.
    """
    config = config or ScrambleConfig()
    rng = rng or random.Random()

    clips: List[ClipSpec] = []
    total = 0.0

    positions = candidate_positions(sources, config, rng)
    if not positions:
        logger.error("[scrambler] No valid positions to cut from")
        return clips

    if config.randomize_order:
        rng.shuffle(positions)

    used: Dict[int, List[Tuple[float, float]]] = {}
    idle_passes = 0

    while total < target_duration:
        accepted_this_pass = 0

        for source_idx, start in positions:
            if total >= target_duration:
                break

            duration = draw_duration(config, rng)

            # Don't run past the end of the source
            remaining = sources[source_idx].duration - start
            duration = min(duration, remaining)
            if duration < config.min_clip_duration:
                continue

            end = start + duration
            source_used = used.setdefault(source_idx, [])
            if _overlaps(start, end, source_used):
                continue

            source_used.append((start, end))
            clips.append(ClipSpec(source_index=source_idx, start=start, duration=duration))
            total += duration
            accepted_this_pass += 1

        if total >= target_duration or not config.randomize_order:
            break

        # Ran out of positions: reshuffle so skipped ones get another
        # chance with a fresh duration, until passes stop paying off
        idle_passes = 0 if accepted_this_pass else idle_passes + 1
        if idle_passes >= config.max_idle_passes:
            break
        rng.shuffle(positions)

    logger.info(
        f"[scrambler] Planned {len(clips)} clips, {total:.1f}s total (needed {target_duration:.1f}s)"
    )
    return clips


def total_duration(clips: Sequence[ClipSpec]) -> float:
    return sum(c.duration for c in clips)
