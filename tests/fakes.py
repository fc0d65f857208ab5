"""In-memory stand-ins for the media engine, fetcher and random source."""
import os
import random

from brollmix.core.enums import FetchErrorKind
from brollmix.core.exceptions import FetchError, InvalidMediaError, MediaError
from brollmix.models.media import VideoMetadata


class FixedRandom(random.Random):
    """random() always returns 0.0, so uniform(a, b) == a and shuffles are fixed."""

    def random(self) -> float:
        return 0.0


class FakeEngine:
    """In-memory media engine. Records every call; writes empty files for outputs."""

    def __init__(self, durations=None, on_cut=None, fail_on=()):
        self.durations = dict(durations or {})
        self.on_cut = on_cut
        self.fail_on = set(fail_on)
        self.calls = []

    def _touch(self, path: str) -> None:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb"):
            pass

    def probe(self, path):
        self.calls.append(("probe", path))
        if "probe" in self.fail_on or self.durations.get(path, 0.0) <= 0:
            raise InvalidMediaError(f"Not a readable video: {path}")
        return VideoMetadata(duration=self.durations[path], width=1920, height=1080, fps=30.0)

    def cut(self, path, output, start, duration, mute_audio=True):
        self.calls.append(("cut", path, output, start, duration, mute_audio))
        if "cut" in self.fail_on:
            raise MediaError("ffmpeg cut failed")
        self._touch(output)
        if self.on_cut:
            self.on_cut()
        return output

    def concat(self, paths, output):
        self.calls.append(("concat", list(paths), output))
        self._touch(output)
        return output

    def composite_split(self, top, bottom, output, dims, ratio):
        self.calls.append(("split", top, bottom, output, dims, ratio))
        self._touch(output)
        return output

    def composite_pip(self, main, overlay, output, dims, corner, scale):
        self.calls.append(("pip", main, overlay, output, dims, corner, scale))
        self._touch(output)
        return output

    def composite_side_by_side(self, left, right, output, dims, ratio):
        self.calls.append(("side_by_side", left, right, output, dims, ratio))
        self._touch(output)
        return output

    def add_sfx(self, video, events, output):
        self.calls.append(("sfx", video, list(events), output))
        self._touch(output)
        return output

    def ops(self):
        return [c[0] for c in self.calls]


class FakeFetcher:
    """Returns a SourceClip per known URL; unknown URLs fail with NOT_FOUND."""

    def __init__(self, clips=None):
        self.clips = dict(clips or {})
        self.fetched = []

    def fetch(self, url):
        self.fetched.append(url)
        if url not in self.clips:
            raise FetchError(FetchErrorKind.NOT_FOUND, url, "Video unavailable")
        return self.clips[url]


