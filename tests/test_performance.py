import math

import pytest

import algorithm
import performance
from attributes import (
    DifficultyAttributes,
    ManiaDifficultyAttributes,
    OsuDifficultyAttributes,
    TaikoDifficultyAttributes,
)
from hit_objects import Ruleset
from mods import NO_MOD, ModifierSet
from performance import (
    HitResult,
    ScoreInfo,
    base_length_bonus,
    custom_accuracy,
    deviation_upper_bound,
    effective_miss_count,
)
from skills import difficulty_to_performance

TAIKO = TaikoDifficultyAttributes(star_rating=5.0, great_hit_window=25.0, mono_stamina_factor=0.05)
MANIA = ManiaDifficultyAttributes(star_rating=5.15, great_hit_window=40.0, strain_factor=0.5)


def taiko_score(great=900, ok=50, miss=0, mods=NO_MOD, ruleset=Ruleset.TAIKO):
    return ScoreInfo({HitResult.GREAT: great, HitResult.OK: ok, HitResult.MISS: miss}, mods, ruleset)


def test_perfect_play_has_full_custom_accuracy():
    score = ScoreInfo({HitResult.PERFECT: 500, HitResult.MISS: 0}, beatmap_ruleset=Ruleset.MANIA)
    assert custom_accuracy(score) == 1.0


@pytest.mark.parametrize("ruleset", [Ruleset.OSU, Ruleset.TAIKO])
def test_all_greats_is_full_accuracy_without_perfects(ruleset):
    assert custom_accuracy(ScoreInfo({HitResult.GREAT: 500}, beatmap_ruleset=ruleset)) == 1.0
    mania = ScoreInfo({HitResult.GREAT: 500}, beatmap_ruleset=Ruleset.MANIA)
    assert custom_accuracy(mania) == pytest.approx(300 / 320)
    assert custom_accuracy(mania, HitResult.GREAT) == 1.0


def test_custom_accuracy_is_zero_without_judgements():
    assert custom_accuracy(ScoreInfo()) == 0


def test_custom_accuracy_rises_with_best_judgements():
    previous = -1.0
    for perfect in (0, 1, 10, 100, 1000):
        score = ScoreInfo({HitResult.PERFECT: perfect, HitResult.OK: 20, HitResult.MEH: 5, HitResult.MISS: 3},
                          beatmap_ruleset=Ruleset.MANIA)
        accuracy = custom_accuracy(score)
        assert accuracy > previous
        previous = accuracy


def test_custom_accuracy_weights():
    score = ScoreInfo({HitResult.GREAT: 1, HitResult.GOOD: 1, HitResult.MISS: 2}, beatmap_ruleset=Ruleset.MANIA)
    assert custom_accuracy(score) == pytest.approx(500 / (4 * 320))


def test_effective_miss_count_scales_short_charts():
    assert effective_miss_count(taiko_score(great=500, ok=0, miss=2)) == pytest.approx(4.0)
    assert effective_miss_count(taiko_score(great=2000, ok=0, miss=3)) == pytest.approx(3.0)
    assert effective_miss_count(ScoreInfo({HitResult.MISS: 5})) == 0


def test_deviation_is_finite_for_perfect_accuracy():
    deviation = deviation_upper_bound(1000, 1000, 25.0)
    assert deviation is not None
    assert math.isfinite(deviation)
    assert deviation > 0


def test_deviation_grows_with_fewer_greats():
    assert deviation_upper_bound(800, 1000, 25.0) > deviation_upper_bound(990, 1000, 25.0)


@pytest.mark.parametrize("greats, total, window", [(0, 100, 25.0), (50, 100, 0.0), (50, 100, -3.0), (0, 0, 25.0)])
def test_deviation_is_unknown(greats, total, window):
    assert deviation_upper_bound(greats, total, window) is None


def test_base_length_bonus_splits_hits():
    hard, easy = base_length_bonus(100.0, 0.25, 1000)
    assert hard == pytest.approx(2.5)
    assert easy == pytest.approx(3.75)


def test_taiko_performance_components():
    result = performance.calculate(taiko_score(), TAIKO)
    assert result.difficulty > 0
    assert result.accuracy > 0
    assert result.estimated_unstable_rate == pytest.approx(
        deviation_upper_bound(900, 950, 25.0) * 10)
    expected = (result.difficulty ** 1.1 + result.accuracy ** 1.1) ** (1 / 1.1) * 1.13
    assert result.total == pytest.approx(expected)


def test_taiko_misses_cost_performance():
    clean = performance.calculate(taiko_score(miss=0), TAIKO)
    missed = performance.calculate(taiko_score(miss=10), TAIKO)
    assert missed.effective_miss_count > 0
    assert missed.difficulty < clean.difficulty
    assert missed.total < clean.total


def test_taiko_without_greats_degrades_to_zero():
    result = performance.calculate(taiko_score(great=0, ok=100), TAIKO)
    assert result.estimated_unstable_rate is None
    assert (result.difficulty, result.accuracy, result.total) == (0, 0, 0)


def test_taiko_without_hit_window_has_no_accuracy_value():
    attributes = TaikoDifficultyAttributes(star_rating=5.0, great_hit_window=0.0)
    result = performance.calculate(taiko_score(), attributes)
    assert result.accuracy == 0
    assert math.isfinite(result.total)
    assert result.total >= 0


def test_taiko_empty_score_is_zero():
    result = performance.calculate(ScoreInfo(), TAIKO)
    assert result.total == 0


def test_taiko_hidden_bonus_skips_converts():
    hidden = ModifierSet.from_acronyms("HD")
    native = performance.calculate(taiko_score(mods=hidden), TAIKO)
    convert = performance.calculate(taiko_score(mods=hidden, ruleset=Ruleset.OSU), TAIKO)
    assert native.total == pytest.approx(convert.total * 1.075)


def test_taiko_easy_lowers_total():
    plain = performance.calculate(taiko_score(), TAIKO)
    easy = performance.calculate(taiko_score(mods=ModifierSet.from_acronyms("EZ")), TAIKO)
    assert easy.total < plain.total


def test_mania_perfect_play():
    score = ScoreInfo({HitResult.PERFECT: 1000}, beatmap_ruleset=Ruleset.MANIA)
    result = performance.calculate(score, MANIA)
    base = 8.0 * math.pow(5.0, 2.2)
    assert result.custom_accuracy == 1.0
    # hard: 500 hits at 1.0, easy: 500 hits at 0.5, averaged
    assert result.length_bonus == pytest.approx(base * 0.0001 * (500 + 250) / 2)
    assert result.total == pytest.approx(base + result.length_bonus)


def test_mania_no_fail_and_easy_multipliers():
    statistics = {HitResult.PERFECT: 900, HitResult.GREAT: 100}
    plain = performance.calculate(ScoreInfo(statistics), MANIA)
    no_fail = performance.calculate(ScoreInfo(statistics, ModifierSet.from_acronyms("NF")), MANIA)
    both = performance.calculate(ScoreInfo(statistics, ModifierSet.from_acronyms("NFEZ")), MANIA)
    assert no_fail.total == pytest.approx(plain.total * 0.75)
    assert both.total == pytest.approx(plain.total * 0.375)


def test_mania_low_accuracy_is_worth_nothing():
    score = ScoreInfo({HitResult.PERFECT: 100, HitResult.MISS: 100})
    assert performance.calculate(score, MANIA).total == 0


def test_mania_empty_score_is_zero():
    assert performance.calculate(ScoreInfo(), MANIA).total == 0


def osu_score(great=60, ok=0, miss=0, mods=NO_MOD):
    return ScoreInfo({HitResult.GREAT: great, HitResult.OK: ok, HitResult.MISS: miss}, mods, Ruleset.OSU)


def test_osu_performance_from_chart_attributes(stream_chart):
    attributes = algorithm.calculate(stream_chart)
    result = performance.calculate(osu_score(great=60, miss=4), attributes)
    assert result.aim > 0
    assert result.tapping > 0
    assert result.accuracy > 0
    assert result.estimated_unstable_rate == pytest.approx(
        deviation_upper_bound(60, 64, attributes.great_hit_window) * 10)
    values = [result.aim, result.tapping, result.reading, result.accuracy]
    expected = sum(v ** 1.1 for v in values) ** (1 / 1.1) * 1.15
    assert result.total == pytest.approx(expected)


def test_osu_skill_values_follow_difficulty_curve(stream_chart):
    attributes = algorithm.calculate(stream_chart)
    result = performance.calculate(osu_score(great=64), attributes)
    assert result.effective_miss_count == 0
    assert result.aim == pytest.approx(difficulty_to_performance(attributes.aim_difficulty))
    assert result.reading == pytest.approx(difficulty_to_performance(attributes.reading_difficulty))


def test_osu_misses_cost_performance(stream_chart):
    attributes = algorithm.calculate(stream_chart)
    clean = performance.calculate(osu_score(great=64), attributes)
    missed = performance.calculate(osu_score(great=60, miss=4), attributes)
    assert missed.aim < clean.aim
    assert missed.total < clean.total


def test_osu_without_greats_or_hits_degrades():
    attributes = OsuDifficultyAttributes(star_rating=4.0, aim_difficulty=2.0, great_hit_window=30.0,
                                         hit_circle_count=500)
    no_greats = performance.calculate(osu_score(great=0, ok=100), attributes)
    assert no_greats.estimated_unstable_rate is None
    assert no_greats.accuracy == 0
    assert math.isfinite(no_greats.total)
    assert no_greats.total > 0
    assert performance.calculate(ScoreInfo(beatmap_ruleset=Ruleset.OSU), attributes).total == 0


def test_unsupported_attributes_raise():
    with pytest.raises(TypeError):
        performance.calculate(ScoreInfo(), DifficultyAttributes())


def test_negative_counts_raise():
    with pytest.raises(ValueError):
        ScoreInfo({HitResult.MISS: -1})
