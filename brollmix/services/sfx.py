"""
SFX Library
Scan a user folder for sound effects, sort them into types by file name and
place them at clip transitions.
"""
from __future__ import annotations

import logging
import os
import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from brollmix.core.scramble_settings import scramble_settings

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = {".mp3", ".wav", ".ogg", ".m4a", ".flac", ".aac"}
MAX_SCAN_DEPTH = 2


class SfxType(str, Enum):
    CHING = "ching"
    RISER = "riser"
    FALLER = "faller"
    WHOOSH = "whoosh"
    POP = "pop"
    BOOM = "boom"
    GLITCH = "glitch"
    CLICK = "click"
    SPARKLE = "sparkle"
    THUD = "thud"

    @classmethod
    def from_filename(cls, filename: str) -> Optional["SfxType"]:
        lower = filename.lower()
        # First match wins, so "bass drop" counts as a faller
        for sfx_type, keywords in _KEYWORDS:
            if any(k in lower for k in keywords):
                return sfx_type
        return None

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_KEYWORDS: Tuple[Tuple[SfxType, Tuple[str, ...]], ...] = (
    (SfxType.CHING, ("ching", "coin", "cash")),
    (SfxType.RISER, ("riser", "rise", "buildup")),
    (SfxType.FALLER, ("fall", "drop")),
    (SfxType.WHOOSH, ("whoosh", "swoosh", "swipe")),
    (SfxType.POP, ("pop", "blip", "bubble")),
    (SfxType.BOOM, ("boom", "bass", "impact")),
    (SfxType.GLITCH, ("glitch", "error", "stutter")),
    (SfxType.CLICK, ("click", "tap", "button")),
    (SfxType.SPARKLE, ("sparkle", "magic", "shimmer")),
    (SfxType.THUD, ("thud", "land", "heavy")),
)

_DESCRIPTIONS = {
    SfxType.CHING: "cash register / coin",
    SfxType.RISER: "tension build going up",
    SfxType.FALLER: "whoosh going down",
    SfxType.WHOOSH: "fast transition",
    SfxType.POP: "bubble pop / blip",
    SfxType.BOOM: "bass drop / impact",
    SfxType.GLITCH: "digital stutter",
    SfxType.CLICK: "ui tap / button",
    SfxType.SPARKLE: "magic shimmer",
    SfxType.THUD: "heavy impact",
}


@dataclass(frozen=True)
class SfxEvent:
    sfx_type: SfxType
    timestamp: float            # seconds into the output


class SfxLibrary:
    def __init__(self, sounds: Optional[Dict[SfxType, List[str]]] = None):
        self.sounds: Dict[SfxType, List[str]] = {t: [] for t in SfxType}
        for sfx_type, paths in (sounds or {}).items():
            self.sounds[sfx_type].extend(paths)

    @classmethod
    def load_from_folder(cls, folder: str) -> "SfxLibrary":
        library = cls()
        if not os.path.isdir(folder):
            logger.warning(f"[sfx] Folder doesn't exist: {folder}")
            return library

        root_depth = os.path.abspath(folder).rstrip(os.sep).count(os.sep)
        for dirpath, dirnames, filenames in os.walk(folder):
            depth = os.path.abspath(dirpath).rstrip(os.sep).count(os.sep) - root_depth
            # Files count one level below their directory
            if depth + 1 >= MAX_SCAN_DEPTH:
                dirnames[:] = []

            for name in sorted(filenames):
                stem, ext = os.path.splitext(name)
                if ext.lower() not in AUDIO_EXTENSIONS:
                    continue
                sfx_type = SfxType.from_filename(stem)
                if sfx_type is None:
                    continue
                path = os.path.join(dirpath, name)
                logger.info(f"[sfx] Found {path} -> {sfx_type.value}")
                library.sounds[sfx_type].append(path)

        return library

    def get_random(self, sfx_type: SfxType, rng: Optional[random.Random] = None) -> Optional[str]:
        paths = self.sounds.get(sfx_type) or []
        if not paths:
            return None
        return (rng or random).choice(paths)

    def available_types(self) -> List[SfxType]:
        return [t for t in SfxType if self.sounds[t]]

    def has_type(self, sfx_type: SfxType) -> bool:
        return bool(self.sounds.get(sfx_type))

    def __len__(self) -> int:
        return sum(len(v) for v in self.sounds.values())

    def match_events(
        self,
        transitions: Sequence[float],
        rng: Optional[random.Random] = None,
        every_n: Optional[int] = None,
    ) -> List[SfxEvent]:
        """
        One event at every Nth clip transition. Whoosh when the library has
        one, otherwise a random available type.
        """
        available = self.available_types()
        if not available:
            return []

        rng = rng or random.Random()
        every_n = max(1, every_n or scramble_settings.sfx_every_n_transitions)

        events: List[SfxEvent] = []
        for i, timestamp in enumerate(transitions):
            if i % every_n:
                continue
            sfx_type = SfxType.WHOOSH if self.has_type(SfxType.WHOOSH) else rng.choice(available)
            events.append(SfxEvent(sfx_type=sfx_type, timestamp=timestamp))
        return events

    def resolve(self, events: Sequence[SfxEvent], rng: Optional[random.Random] = None) -> List[Tuple[float, str]]:
        """Pick a concrete file for each event. Events with no matching sound are dropped."""
        rng = rng or random.Random()
        resolved = []
        for event in events:
            path = self.get_random(event.sfx_type, rng)
            if path:
                resolved.append((event.timestamp, path))
        return resolved


def transition_times(durations: Sequence[float]) -> List[float]:
    """Timestamps where one clip ends and the next begins."""
    times = []
    elapsed = 0.0
    for d in durations[:-1]:
        elapsed += d
        times.append(elapsed)
    return times
