import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

from algorithm import PERFORMANCE_BASE_MULTIPLIER
from attributes import (
    ManiaDifficultyAttributes,
    ManiaPerformanceAttributes,
    OsuDifficultyAttributes,
    OsuPerformanceAttributes,
    TaikoDifficultyAttributes,
    TaikoPerformanceAttributes,
)
from difficulty_utils import erf, erf_inv, power_mean
from hit_objects import Ruleset
from mods import NO_MOD, Mod
from skills import difficulty_to_performance

logger = logging.getLogger(__name__)

# 99% critical value for the normal distribution (one-tailed)
WILSON_Z = 2.32634787404
TOTAL_POWER_MEAN_EXPONENT = 1.1
MISS_PENALTY_BASE = 0.986
HARD_HIT_MULTIPLIER = 1.0
EASY_HIT_MULTIPLIER = 0.5


class HitResult(Enum):
    PERFECT = "perfect"
    GREAT = "great"
    GOOD = "good"
    OK = "ok"
    MEH = "meh"
    MISS = "miss"


# scoring value of every judgement, best first
HIT_RESULT_VALUES = {
    HitResult.PERFECT: 320,
    HitResult.GREAT: 300,
    HitResult.GOOD: 200,
    HitResult.OK: 100,
    HitResult.MEH: 50,
    HitResult.MISS: 0,
}

# best judgement a ruleset awards; only mania has PERFECT above GREAT
BEST_HIT_RESULT = {
    Ruleset.OSU: HitResult.GREAT,
    Ruleset.TAIKO: HitResult.GREAT,
    Ruleset.CATCH: HitResult.GREAT,
    Ruleset.MANIA: HitResult.PERFECT,
}


@dataclass(frozen=True)
class ScoreInfo:
    """A played result: judgement counts, the mods played with, and the chart's own ruleset."""
    statistics: Mapping[HitResult, int] = field(default_factory=dict)
    mods: object = NO_MOD
    beatmap_ruleset: Ruleset = Ruleset.TAIKO

    def __post_init__(self):
        for result, count in self.statistics.items():
            if count < 0:
                raise ValueError(f"negative {result.value} count: {count}")

    def count(self, result):
        return int(self.statistics.get(result, 0))

    @property
    def total_hits(self):
        return sum(self.count(r) for r in HitResult)

    @property
    def total_successful_hits(self):
        return self.total_hits - self.count(HitResult.MISS)


# -----Start of Helper methods--------

def custom_accuracy(score, best_result=None):
    """
    Accuracy weighting judgements by their scoring value, independent of the score's own accuracy.
    Scored against the best judgement of the chart's ruleset unless `best_result` is given.
    """
    total_hits = score.total_hits
    if total_hits == 0:
        return 0.0
    if best_result is None:
        best_result = BEST_HIT_RESULT[score.beatmap_ruleset]
    summed_hits = sum(min(HIT_RESULT_VALUES[r], HIT_RESULT_VALUES[best_result]) * score.count(r)
                      for r in HitResult)
    return summed_hits / (total_hits * HIT_RESULT_VALUES[best_result])


def effective_miss_count(score):
    """Misses weigh more on charts with fewer than 1000 successful hits."""
    successful = score.total_successful_hits
    if successful == 0:
        return 0.0
    return max(1.0, 1000.0 / successful) * score.count(HitResult.MISS)


def deviation_upper_bound(count_great, total_hits, great_hit_window):
    """
    Upper bound on the player's tap deviation assuming a mean hit error of 0.
    Two full-great results on the same chart and mods always give the same bound.
    None when it cannot be estimated.
    """
    if count_great == 0 or total_hits == 0 or great_hit_window <= 0:
        return None

    z = WILSON_Z
    n = total_hits
    # Proportion of greats hit.
    p = count_great / n
    # We can be 99% confident that p is at least this value.
    p_lower_bound = ((n * p + z * z / 2) / (n + z * z) -
                     z / (n + z * z) * math.sqrt(max(n * p * (1 - p) + z * z / 4, 0.0)))
    if p_lower_bound <= 0:
        return None

    # We can be 99% confident that the deviation is not higher than:
    return great_hit_window / (math.sqrt(2) * erf_inv(p_lower_bound))


def base_length_bonus(base_pp, difficulty_factor, total_hits,
                      hard_hit_multiplier=HARD_HIT_MULTIPLIER, easy_hit_multiplier=EASY_HIT_MULTIPLIER):
    """
    Split the hits into hard (spike) and easy (filler) shares, each earning
    base_pp * 0.0001 per hit times its multiplier. Returns (hard, easy).
    """
    difficulty_factor = min(max(difficulty_factor, 0.0), 1.0)
    hard_hits = total_hits * difficulty_factor
    easy_hits = total_hits - hard_hits
    hard_length_bonus = base_pp * 0.0001 * hard_hit_multiplier * hard_hits
    easy_length_bonus = base_pp * 0.0001 * easy_hit_multiplier * easy_hits
    return hard_length_bonus, easy_length_bonus

# -----End of Helper methods--------

def calculate_taiko(score, attributes):
    count_great = score.count(HitResult.GREAT)
    total_hits = score.total_hits
    deviation = deviation_upper_bound(count_great, total_hits, attributes.great_hit_window)
    estimated_unstable_rate = deviation * 10 if deviation is not None else None
    miss_count = effective_miss_count(score)

    # Converts are left out of mod-specific bonuses.
    is_convert = score.beatmap_ruleset is not Ruleset.TAIKO
    mods = score.mods

    multiplier = 1.13
    if Mod.HD in mods and not is_convert:
        multiplier *= 1.075
    if Mod.EZ in mods:
        multiplier *= 0.950

    difficulty_value = _taiko_difficulty_value(mods, attributes, total_hits, miss_count, estimated_unstable_rate)
    accuracy_value = _taiko_accuracy_value(mods, attributes, total_hits, estimated_unstable_rate, is_convert)
    total_value = power_mean([difficulty_value, accuracy_value], TOTAL_POWER_MEAN_EXPONENT) * multiplier

    logger.debug("taiko pp: difficulty=%.3f accuracy=%.3f ur=%s total=%.3f",
                 difficulty_value, accuracy_value, estimated_unstable_rate, total_value)

    return TaikoPerformanceAttributes(
        difficulty=difficulty_value,
        accuracy=accuracy_value,
        effective_miss_count=miss_count,
        estimated_unstable_rate=estimated_unstable_rate,
        total=total_value,
    )

def _taiko_difficulty_value(mods, attributes, total_hits, miss_count, estimated_unstable_rate):
    if estimated_unstable_rate is None:
        return 0.0

    base_difficulty = 5 * max(1.0, attributes.star_rating / 0.115) - 4.0
    difficulty_value = min(math.pow(base_difficulty, 3) / 69052.51, math.pow(base_difficulty, 2.25) / 1150.0)

    length_bonus = 1 + 0.1 * min(1.0, total_hits / 1500.0)
    difficulty_value *= length_bonus

    difficulty_value *= math.pow(MISS_PENALTY_BASE, miss_count)

    if Mod.EZ in mods:
        difficulty_value *= 0.90

    if Mod.HD in mods:
        difficulty_value *= 1.025

    if Mod.FL in mods:
        difficulty_value *= max(1, 1.050 - min(attributes.mono_stamina_factor / 50, 1) * length_bonus)

    # Scale accuracy more harshly on nearly-completely mono (single coloured) speed maps.
    acc_scaling_exponent = 2 + attributes.mono_stamina_factor
    acc_scaling_shift = 400 - 100 * attributes.mono_stamina_factor

    return difficulty_value * math.pow(
        erf(acc_scaling_shift / (math.sqrt(2) * estimated_unstable_rate)), acc_scaling_exponent)

def _taiko_accuracy_value(mods, attributes, total_hits, estimated_unstable_rate, is_convert):
    if attributes.great_hit_window <= 0 or estimated_unstable_rate is None:
        return 0.0

    accuracy_value = math.pow(70 / estimated_unstable_rate, 1.1) * math.pow(attributes.star_rating, 0.4) * 100.0

    length_bonus = min(1.15, math.pow(total_hits / 1500.0, 0.3))

    # Slight HDFL bonus for accuracy. The clamp keeps short charts from being penalised.
    if Mod.FL in mods and Mod.HD in mods and not is_convert:
        accuracy_value *= max(1.0, 1.05 * length_bonus)

    return accuracy_value

def calculate_mania(score, attributes):
    # converts played in mania are still judged up to PERFECT
    accuracy = custom_accuracy(score, HitResult.PERFECT)
    mods = score.mods

    multiplier = 1.0
    if Mod.NF in mods:
        multiplier *= 0.75
    if Mod.EZ in mods:
        multiplier *= 0.5

    # Star rating to pp curve
    difficulty_value = 8.0 * math.pow(max(attributes.star_rating - 0.15, 0.05), 2.2)

    hard_bonus, easy_bonus = base_length_bonus(difficulty_value, attributes.strain_factor, score.total_hits)
    length_bonus = (easy_bonus + hard_bonus) / 2
    difficulty_value += length_bonus
    difficulty_value *= max(0.0, 5 * accuracy - 4)

    return ManiaPerformanceAttributes(
        difficulty=difficulty_value,
        custom_accuracy=accuracy,
        length_bonus=length_bonus,
        total=difficulty_value * multiplier,
    )

def calculate_osu(score, attributes):
    total_hits = score.total_hits
    if total_hits == 0:
        return OsuPerformanceAttributes()

    mods = score.mods
    miss_count = effective_miss_count(score)
    deviation = deviation_upper_bound(score.count(HitResult.GREAT), total_hits, attributes.great_hit_window)
    estimated_unstable_rate = deviation * 10 if deviation is not None else None

    multiplier = PERFORMANCE_BASE_MULTIPLIER
    if Mod.NF in mods:
        multiplier *= max(0.90, 1.0 - 0.02 * miss_count)

    miss_penalty = math.pow(MISS_PENALTY_BASE, miss_count)
    aim_value = difficulty_to_performance(attributes.aim_difficulty) * miss_penalty
    tapping_value = difficulty_to_performance(attributes.tapping_difficulty) * miss_penalty
    reading_value = difficulty_to_performance(attributes.reading_difficulty) * miss_penalty
    accuracy_value = _osu_accuracy_value(mods, attributes, estimated_unstable_rate)

    total_value = power_mean([aim_value, tapping_value, reading_value, accuracy_value],
                             TOTAL_POWER_MEAN_EXPONENT) * multiplier

    logger.debug("osu pp: aim=%.3f tapping=%.3f reading=%.3f accuracy=%.3f ur=%s total=%.3f",
                 aim_value, tapping_value, reading_value, accuracy_value, estimated_unstable_rate, total_value)

    return OsuPerformanceAttributes(
        aim=aim_value,
        tapping=tapping_value,
        reading=reading_value,
        accuracy=accuracy_value,
        effective_miss_count=miss_count,
        estimated_unstable_rate=estimated_unstable_rate,
        total=total_value,
    )

def _osu_accuracy_value(mods, attributes, estimated_unstable_rate):
    if estimated_unstable_rate is None:
        return 0.0

    accuracy_value = math.pow(70 / estimated_unstable_rate, 1.1) * math.pow(attributes.star_rating, 0.4) * 100.0

    # Only circles are judged on timing alone.
    accuracy_value *= min(1.15, math.pow(attributes.hit_circle_count / 1000.0, 0.3))

    if Mod.HD in mods:
        accuracy_value *= 1.08
    if Mod.FL in mods:
        accuracy_value *= 1.02
    return accuracy_value

def calculate(score, attributes):
    """Performance attributes of a played result against a chart's difficulty attributes."""
    if isinstance(attributes, OsuDifficultyAttributes):
        return calculate_osu(score, attributes)
    if isinstance(attributes, TaikoDifficultyAttributes):
        return calculate_taiko(score, attributes)
    if isinstance(attributes, ManiaDifficultyAttributes):
        return calculate_mania(score, attributes)
    raise TypeError(f"no performance calculator for {type(attributes).__name__}")
