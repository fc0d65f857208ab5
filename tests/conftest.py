import os
import tempfile

import pytest

# Keep the app's working dirs out of the repo while tests import it
_TEST_DATA = tempfile.mkdtemp(prefix="brollmix-tests-")
os.environ.setdefault("TEMP_DIR", os.path.join(_TEST_DATA, "temp"))
os.environ.setdefault("DOWNLOAD_DIR", os.path.join(_TEST_DATA, "downloads"))
os.environ.setdefault("EXPORTS_DIR", os.path.join(_TEST_DATA, "exports"))

from brollmix.core.settings import Settings  # noqa: E402
from brollmix.models.media import SourceClip  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        temp_dir=str(tmp_path / "temp"),
        download_dir=str(tmp_path / "downloads"),
        exports_dir=str(tmp_path / "exports"),
    )


@pytest.fixture
def source_clip():
    def make(path: str, duration: float, title: str = "clip") -> SourceClip:
        return SourceClip(path=path, title=title, duration=duration, source_id=path)
    return make
