import math

import pytest

from hit_objects import BeatmapDifficulty, InvalidHitObjectError, ObjectKind, TimedObject
from mods import NO_MOD, Mod, ModError, ModifierSet, parse_acronyms


def test_parse_acronyms_accepts_common_spellings():
    assert parse_acronyms("HDDT") == [Mod.HD, Mod.DT]
    assert parse_acronyms("hd, dt") == [Mod.HD, Mod.DT]
    assert parse_acronyms("") == []


def test_parse_acronyms_rejects_unknown():
    with pytest.raises(ModError):
        parse_acronyms("HDXX")
    with pytest.raises(ModError):
        parse_acronyms("HDD")


def test_from_acronyms_rejects_unknown_list_entries():
    assert ModifierSet.from_acronyms(["HD", Mod.DT]).acronyms == ("DT", "HD")
    with pytest.raises(ModError):
        ModifierSet.from_acronyms(["HD", "XX"])


def test_default_rates():
    assert NO_MOD.clock_rate == 1.0
    assert ModifierSet.from_acronyms("DT").clock_rate == 1.5
    assert ModifierSet.from_acronyms("NC").clock_rate == 1.5
    assert ModifierSet.from_acronyms("HT").clock_rate == 0.75
    assert ModifierSet.from_acronyms("HDDT", speed_change=1.3).clock_rate == 1.3


def test_conflicting_rate_mods_are_rejected():
    with pytest.raises(ModError):
        ModifierSet.from_acronyms("DTHT")
    with pytest.raises(ModError):
        ModifierSet(frozenset({Mod.DT, Mod.NC}), 1.5)


def test_rate_must_match_mod():
    with pytest.raises(ModError):
        ModifierSet.from_acronyms("DT", speed_change=0.8)
    with pytest.raises(ModError):
        ModifierSet.from_acronyms("HD", speed_change=1.2)
    with pytest.raises(ModError):
        ModifierSet(frozenset({Mod.DT}), math.nan)
    with pytest.raises(ModError):
        ModifierSet(frozenset(), 1.5)


def test_acronyms_are_stable_and_drop_nomod():
    mods = ModifierSet.from_acronyms("DTHDNM")
    assert mods.acronyms == ("DT", "HD")
    assert Mod.HD in mods
    assert mods.any_of(Mod.FL, Mod.DT)


def test_hard_rock_and_easy_adjust_settings():
    difficulty = BeatmapDifficulty(approach_rate=9.0, overall_difficulty=8.0, circle_size=4.0, drain_rate=6.0)
    hard = ModifierSet.from_acronyms("HR").adjust_difficulty(difficulty)
    assert hard.approach_rate == 10.0
    assert hard.circle_size == pytest.approx(5.2)
    easy = ModifierSet.from_acronyms("EZ").adjust_difficulty(difficulty)
    assert easy.overall_difficulty == 4.0
    assert NO_MOD.adjust_difficulty(difficulty) is difficulty


@pytest.mark.parametrize("start", [-1.0, math.nan])
def test_invalid_object_times_raise(start):
    with pytest.raises(InvalidHitObjectError):
        TimedObject(start_time=start)


def test_end_before_start_raises():
    with pytest.raises(InvalidHitObjectError):
        TimedObject(start_time=100, end_time=50)


def test_combo_counts_slider_parts():
    assert TimedObject(0).combo == 1
    assert TimedObject(0, 500, kind=ObjectKind.SPANNING, repeat_count=1).combo == 3
    assert TimedObject(0).end_time == 0
