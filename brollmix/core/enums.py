from enum import Enum

class JobState(str, Enum):
    # Initial state
    QUEUED = "QUEUED"

    # Pipeline stages (ordered)
    DOWNLOADING = "DOWNLOADING"
    PROCESSING = "PROCESSING"
    COMPOSITING = "COMPOSITING"
    FINALIZING = "FINALIZING"

    # Terminal states
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETE, JobState.FAILED, JobState.CANCELLED)


_FORMAT_META = {
    "youtube": ("YouTube", 1920, 1080, "16:9 landscape for YouTube"),
    "tiktok": ("TikTok", 1080, 1920, "9:16 portrait for TikTok/Reels"),
    "instagram": ("Instagram", 1080, 1350, "4:5 for Instagram feed"),
    "custom": ("Custom", 0, 0, "Pick your own dimensions"),
}

class OutputFormat(str, Enum):
    YOUTUBE = "youtube"
    TIKTOK = "tiktok"
    INSTAGRAM = "instagram"
    CUSTOM = "custom"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None

    @property
    def label(self) -> str:
        return _FORMAT_META[self.value][0]

    @property
    def preset_size(self) -> tuple[int, int]:
        """(width, height) of the preset; (0, 0) for custom."""
        _, width, height, _ = _FORMAT_META[self.value]
        return width, height

    @property
    def description(self) -> str:
        return _FORMAT_META[self.value][3]


_POSITION_META = {
    "top": ("Top", "B-Roll on Top", "Classic split - B-Roll above, you below"),
    "bottom": ("Bottom", "B-Roll on Bottom", "Split - you above, B-Roll below"),
    "top-left": ("Top Left", "Picture in Picture (Top Left)", "Small B-Roll overlay in top left corner"),
    "top-right": ("Top Right", "Picture in Picture (Top Right)", "Small B-Roll overlay in top right corner"),
    "bottom-left": ("Bottom Left", "Picture in Picture (Bottom Left)", "Small B-Roll overlay in bottom left corner"),
    "bottom-right": ("Bottom Right", "Picture in Picture (Bottom Right)", "Small B-Roll overlay in bottom right corner"),
    "side-by-side": ("Side by Side", "Side by Side", "B-Roll on left, you on right"),
}

class OverlayPosition(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"
    SIDE_BY_SIDE = "side-by-side"

    @classmethod
    def _missing_(cls, value):
        # Accept "topleft", "top_left", "Top Left", "sidebyside", ...
        if isinstance(value, str):
            squashed = "".join(ch for ch in value.lower() if ch.isalpha())
            for member in cls:
                if member.value.replace("-", "") == squashed:
                    return member
        return None

    @property
    def label(self) -> str:
        return _POSITION_META[self.value][0]

    @property
    def menu_label(self) -> str:
        return _POSITION_META[self.value][1]

    @property
    def description(self) -> str:
        return _POSITION_META[self.value][2]


class FetchErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    NETWORK_FAILURE = "NETWORK_FAILURE"
    UNSUPPORTED = "UNSUPPORTED"


class PipelineOutcome(str, Enum):
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
