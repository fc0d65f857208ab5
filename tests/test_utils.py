import os
import time

from brollmix.utils import cleanup_old_temp_files, format_duration


def test_format_duration() -> None:
    assert format_duration(65.0) == "1:05"
    assert format_duration(3661.0) == "61:01"
    assert format_duration(30.0) == "0:30"


def test_cleanup_removes_only_stale_entries(tmp_path) -> None:
    stale_dir = tmp_path / "oldjob"
    stale_dir.mkdir()
    (stale_dir / "clip_0000.mp4").write_bytes(b"")
    stale_file = tmp_path / "old.txt"
    stale_file.write_bytes(b"")
    fresh = tmp_path / "newjob"
    fresh.mkdir()

    two_days_ago = time.time() - 48 * 3600
    for path in (stale_dir, stale_file):
        os.utime(path, (two_days_ago, two_days_ago))

    removed = cleanup_old_temp_files(str(tmp_path), 24)

    assert removed == 2
    assert not stale_dir.exists()
    assert not stale_file.exists()
    assert fresh.exists()


def test_cleanup_missing_dir_is_noop(tmp_path) -> None:
    assert cleanup_old_temp_files(str(tmp_path / "nope"), 24) == 0
