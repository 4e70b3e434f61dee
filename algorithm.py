import logging
import math

import pandas as pd

import osu_file_parser as osu_parser
from attributes import OsuDifficultyAttributes, TaikoDifficultyAttributes
from difficulty_utils import difficulty_range, power_mean, preempt_to_approach_rate
from hit_objects import ObjectKind, Ruleset
from mods import NO_MOD, Mod
from preprocessing import sequence
from skills import AIM, OSU_SKILLS, READING, RHYTHM, TAIKO_READING, TAPPING, run_skills

logger = logging.getLogger(__name__)

DIFFICULTY_MULTIPLIER = 0.0675
PERFORMANCE_BASE_MULTIPLIER = 1.15
STAR_RATING_MULTIPLIER = 0.027
SKILL_POWER_MEAN_EXPONENT = 1.1
MIN_BASE_PERFORMANCE = 0.00001


class UnsupportedRulesetError(ValueError):
    pass


# -----Start of Helper methods--------

def hit_windows(overall_difficulty, clock_rate):
    """(great, ok, meh) windows in ms at the active clock rate."""
    great = difficulty_range(overall_difficulty, 80, 50, 20) / clock_rate
    ok = difficulty_range(overall_difficulty, 140, 100, 60) / clock_rate
    meh = difficulty_range(overall_difficulty, 200, 150, 100) / clock_rate
    return great, ok, meh

def taiko_hit_windows(overall_difficulty, clock_rate):
    great = difficulty_range(overall_difficulty, 50, 35, 20) / clock_rate
    ok = difficulty_range(overall_difficulty, 120, 80, 50) / clock_rate
    return great, ok

def apply_mod_attenuation(mods, aim_rating, tapping_rating, reading_rating):
    """Skill zeroing / attenuation for assistance mods, done before the power mean."""
    if Mod.TD in mods:
        aim_rating = math.pow(aim_rating, 0.8)
        reading_rating = math.pow(reading_rating, 0.8)

    if Mod.RX in mods:
        aim_rating *= 0.9
        tapping_rating = 0.0
        reading_rating *= 0.7
    elif Mod.AP in mods:
        tapping_rating *= 0.5
        aim_rating = 0.0
        reading_rating *= 0.4
    return aim_rating, tapping_rating, reading_rating

def star_rating_from(base_performance):
    if base_performance <= MIN_BASE_PERFORMANCE:
        return 0.0
    return (math.cbrt(PERFORMANCE_BASE_MULTIPLIER) * STAR_RATING_MULTIPLIER *
            (math.cbrt(100000 / math.pow(2, 1 / SKILL_POWER_MEAN_EXPONENT) * base_performance) + 4))

# -----End of Helper methods--------

def calculate(chart, mods=NO_MOD):
    """Rate a chart under a modifier set. An empty chart rates 0 everywhere."""
    if not chart.objects:
        return OsuDifficultyAttributes(mods=mods.acronyms)

    # === Sequencing and strain accumulation ===
    derived = sequence(chart.objects, mods, chart.difficulty)
    skills = run_skills(derived, OSU_SKILLS, mods)
    aim = skills[AIM.name]
    tapping = skills[TAPPING.name]
    rhythm = skills[RHYTHM.name]
    reading = skills[READING.name]

    # === Per-skill ratings ===
    aim_rating = math.sqrt(aim.difficulty_value()) * DIFFICULTY_MULTIPLIER
    tapping_rating = math.sqrt(tapping.difficulty_value()) * DIFFICULTY_MULTIPLIER
    reading_rating = reading.difficulty_value() * DIFFICULTY_MULTIPLIER
    rhythm_rating = rhythm.difficulty_value() * DIFFICULTY_MULTIPLIER

    aim_rating, tapping_rating, reading_rating = apply_mod_attenuation(
        mods, aim_rating, tapping_rating, reading_rating)

    # === Combination ===
    base_performance = power_mean([aim_rating, tapping_rating, reading_rating], SKILL_POWER_MEAN_EXPONENT)
    star_rating = star_rating_from(base_performance)

    # === Echoed chart metadata ===
    difficulty = mods.adjust_difficulty(chart.difficulty)
    preempt = difficulty_range(difficulty.approach_rate, 1800, 1200, 450) / mods.clock_rate
    great, ok, meh = hit_windows(difficulty.overall_difficulty, mods.clock_rate)

    logger.debug("%s [%s]: aim=%.4f tapping=%.4f reading=%.4f -> %.4f stars",
                 chart.title or "chart", "".join(mods.acronyms) or "NM",
                 aim_rating, tapping_rating, reading_rating, star_rating)

    return OsuDifficultyAttributes(
        star_rating=star_rating,
        mods=mods.acronyms,
        max_combo=chart.max_combo,
        aim_difficulty=aim_rating,
        tapping_difficulty=tapping_rating,
        rhythm_difficulty=rhythm_rating,
        reading_difficulty=reading_rating,
        speed_note_count=tapping.relevant_note_count(),
        aim_difficult_strain_count=aim.count_top_weighted_strains(),
        speed_difficult_strain_count=tapping.count_top_weighted_strains(),
        aim_consistency_factor=aim.consistency_factor(),
        tapping_consistency_factor=tapping.consistency_factor(),
        approach_rate=preempt_to_approach_rate(preempt),
        overall_difficulty=(80 - great) / 6,
        great_hit_window=great,
        ok_hit_window=ok,
        meh_hit_window=meh,
        drain_rate=difficulty.drain_rate,
        hit_circle_count=chart.count(ObjectKind.NORMAL),
        slider_count=chart.count(ObjectKind.SPANNING),
        spinner_count=chart.count(ObjectKind.NON_INTERACTIVE),
    )

def calculate_taiko(chart, mods=NO_MOD, star_rating=0.0, mono_stamina_factor=0.0):
    """
    Reading rating and hit windows of a taiko chart. The star rating and mono
    stamina factor come from the colour/stamina rating and are echoed through.
    """
    if not chart.objects:
        return TaikoDifficultyAttributes(mods=mods.acronyms)

    derived = sequence(chart.objects, mods, chart.difficulty)
    reading = run_skills(derived, (TAIKO_READING,), mods)[TAIKO_READING.name]
    difficulty = mods.adjust_difficulty(chart.difficulty)
    great, ok = taiko_hit_windows(difficulty.overall_difficulty, mods.clock_rate)

    return TaikoDifficultyAttributes(
        star_rating=star_rating,
        mods=mods.acronyms,
        max_combo=chart.count(ObjectKind.NORMAL),
        reading_difficulty=reading.difficulty_value() * DIFFICULTY_MULTIPLIER,
        mono_stamina_factor=mono_stamina_factor,
        consistency_factor=reading.consistency_factor(),
        great_hit_window=great,
        ok_hit_window=ok,
    )

def strain_breakdown(chart, mods=NO_MOD, definitions=OSU_SKILLS):
    """Per-object evaluator values and running strains, one row per object."""
    derived = sequence(chart.objects, mods, chart.difficulty)
    skills = run_skills(derived, definitions, mods)

    columns = {
        'time': [d.start_time for d in derived],
        'delta_time': [d.delta_time for d in derived],
        'distance': [d.jump_distance for d in derived],
        'angle': [d.angle for d in derived],
    }
    for definition in definitions:
        columns[definition.name] = [definition.evaluator(mods, d) for d in derived]
        columns[definition.name + '_strain'] = skills[definition.name].object_strains
    return pd.DataFrame(columns)

def calculate_chart(chart, mods=NO_MOD):
    """Rate a chart with the calculator of its own ruleset."""
    if chart.ruleset is Ruleset.OSU:
        return calculate(chart, mods)
    if chart.ruleset is Ruleset.TAIKO:
        return calculate_taiko(chart, mods)
    raise UnsupportedRulesetError(f"no difficulty calculator for {chart.ruleset.name.lower()} charts")

def calculate_file(file_path, mods=NO_MOD):
    p_obj = osu_parser.parser(file_path)
    p_obj.process()
    return calculate_chart(p_obj.get_chart(), mods)
