"""
Composition strategy selection.

Maps an overlay position to the media engine call that builds the final
frame. Geometry lives in the editor; this module only decides which
operation runs and which track goes where.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from brollmix.core.enums import OverlayPosition
from brollmix.models.job import JobConfig
from brollmix.models.media import Dimensions

logger = logging.getLogger(__name__)


class CompositeOp(str, Enum):
    SPLIT = "SPLIT"
    PIP = "PIP"
    SIDE_BY_SIDE = "SIDE_BY_SIDE"


BROLL = "broll"
USER = "user"


@dataclass(frozen=True)
class CompositionPlan:
    operation: CompositeOp
    primary: str                 # top / main / left track
    secondary: str               # bottom / overlay / right track
    ratio: float
    corner: Optional[OverlayPosition] = None
    scale: Optional[float] = None


def select_composition(
    position: OverlayPosition,
    split_ratio: float,
    pip_scale: float,
) -> CompositionPlan:
    position = OverlayPosition(position)

    if position is OverlayPosition.TOP:
        return CompositionPlan(CompositeOp.SPLIT, BROLL, USER, split_ratio)

    if position is OverlayPosition.BOTTOM:
        # User goes on top, so the top share flips
        return CompositionPlan(CompositeOp.SPLIT, USER, BROLL, 1.0 - split_ratio)

    if position is OverlayPosition.SIDE_BY_SIDE:
        return CompositionPlan(CompositeOp.SIDE_BY_SIDE, BROLL, USER, split_ratio)

    # Corners: user video is the main frame, B-roll is the inset
    return CompositionPlan(
        CompositeOp.PIP, USER, BROLL, split_ratio, corner=position, scale=pip_scale
    )


def resolve_dimensions(config: JobConfig) -> Dimensions:
    return config.dimensions()


def apply_composition(
    engine,
    plan: CompositionPlan,
    broll_path: str,
    user_path: str,
    output: str,
    dims: Dimensions,
) -> str:
    """Run the composite call the plan describes. Returns the output path."""
    tracks = {BROLL: broll_path, USER: user_path}
    primary = tracks[plan.primary]
    secondary = tracks[plan.secondary]

    logger.info(
        f"[compositor] {plan.operation.value} {dims.width}x{dims.height} "
        f"primary={plan.primary} ratio={plan.ratio:.2f}"
    )

    if plan.operation is CompositeOp.SPLIT:
        engine.composite_split(primary, secondary, output, dims, plan.ratio)
    elif plan.operation is CompositeOp.SIDE_BY_SIDE:
        engine.composite_side_by_side(primary, secondary, output, dims, plan.ratio)
    else:
        engine.composite_pip(primary, secondary, output, dims, plan.corner, plan.scale)

    return output
