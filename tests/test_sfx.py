"""Tests for the SFX library: folder scan, type matching and event placement."""

import random

import pytest

from brollmix.services.sfx import SfxEvent, SfxLibrary, SfxType, transition_times


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Cash_Register", SfxType.CHING),
        ("tension_riser_02", SfxType.RISER),
        ("bass drop", SfxType.FALLER),
        ("Swoosh-fast", SfxType.WHOOSH),
        ("bubble", SfxType.POP),
        ("big_impact", SfxType.BOOM),
        ("digital_glitch", SfxType.GLITCH),
        ("ui_button", SfxType.CLICK),
        ("magic_dust", SfxType.SPARKLE),
        ("heavy_thing", SfxType.THUD),
        ("ambience", None),
    ],
)
def test_type_from_filename(name, expected) -> None:
    assert SfxType.from_filename(name) is expected


def test_load_from_folder_scans_two_levels(tmp_path) -> None:
    (tmp_path / "whoosh1.mp3").write_bytes(b"")
    (tmp_path / "notes.txt").write_bytes(b"")
    (tmp_path / "pack").mkdir()
    (tmp_path / "pack" / "pop.WAV").write_bytes(b"")
    (tmp_path / "pack" / "deeper").mkdir()
    (tmp_path / "pack" / "deeper" / "boom.mp3").write_bytes(b"")

    library = SfxLibrary.load_from_folder(str(tmp_path))

    assert library.available_types() == [SfxType.WHOOSH, SfxType.POP]
    assert library.has_type(SfxType.POP)
    assert not library.has_type(SfxType.BOOM)
    assert len(library) == 2


def test_missing_folder_gives_empty_library(tmp_path) -> None:
    library = SfxLibrary.load_from_folder(str(tmp_path / "nope"))
    assert library.available_types() == []
    assert library.match_events([1.0, 2.0]) == []


def test_events_prefer_whoosh_every_n_transitions() -> None:
    library = SfxLibrary({SfxType.WHOOSH: ["w.mp3"], SfxType.POP: ["p.mp3"]})

    events = library.match_events([2.0, 4.0, 6.0, 8.0, 10.0], random.Random(0), every_n=2)

    assert events == [
        SfxEvent(SfxType.WHOOSH, 2.0),
        SfxEvent(SfxType.WHOOSH, 6.0),
        SfxEvent(SfxType.WHOOSH, 10.0),
    ]


def test_events_fall_back_to_available_types() -> None:
    library = SfxLibrary({SfxType.CLICK: ["c.mp3"]})
    events = library.match_events([1.0, 2.0], random.Random(0), every_n=1)
    assert [e.sfx_type for e in events] == [SfxType.CLICK, SfxType.CLICK]


def test_resolve_picks_files() -> None:
    library = SfxLibrary({SfxType.WHOOSH: ["w.mp3"]})
    events = [SfxEvent(SfxType.WHOOSH, 1.5), SfxEvent(SfxType.BOOM, 3.0)]

    assert library.resolve(events, random.Random(0)) == [(1.5, "w.mp3")]


def test_transition_times_are_clip_boundaries() -> None:
    assert transition_times([2.0, 3.0, 1.5]) == [2.0, 5.0]
    assert transition_times([4.0]) == []
    assert transition_times([]) == []
