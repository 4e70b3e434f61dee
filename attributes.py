from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

# Bumped whenever a curve constant or formula changes so cached attributes go stale.
DIFFICULTY_VERSION = 20241007


class DifficultyAttributes(BaseModel):
    model_config = ConfigDict(frozen=True)

    star_rating: float = 0.0
    mods: Tuple[str, ...] = ()
    max_combo: int = 0
    version: int = DIFFICULTY_VERSION


class OsuDifficultyAttributes(DifficultyAttributes):
    aim_difficulty: float = 0.0
    tapping_difficulty: float = 0.0
    rhythm_difficulty: float = 0.0
    reading_difficulty: float = 0.0
    speed_note_count: float = 0.0
    aim_difficult_strain_count: float = 0.0
    speed_difficult_strain_count: float = 0.0
    aim_consistency_factor: float = 0.0
    tapping_consistency_factor: float = 0.0
    approach_rate: float = 0.0
    overall_difficulty: float = 0.0
    great_hit_window: float = 0.0
    ok_hit_window: float = 0.0
    meh_hit_window: float = 0.0
    drain_rate: float = 0.0
    hit_circle_count: int = 0
    slider_count: int = 0
    spinner_count: int = 0


class TaikoDifficultyAttributes(DifficultyAttributes):
    reading_difficulty: float = 0.0
    mono_stamina_factor: float = 0.0
    consistency_factor: float = 0.0
    great_hit_window: float = 0.0
    ok_hit_window: float = 0.0


class ManiaDifficultyAttributes(DifficultyAttributes):
    # share of the chart's hits judged as hard (spike) content, 0..1
    strain_factor: float = 0.0
    great_hit_window: float = 0.0


class PerformanceAttributes(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: float = 0.0


class TaikoPerformanceAttributes(PerformanceAttributes):
    difficulty: float = 0.0
    accuracy: float = 0.0
    effective_miss_count: float = 0.0
    estimated_unstable_rate: Optional[float] = None


class ManiaPerformanceAttributes(PerformanceAttributes):
    difficulty: float = 0.0
    custom_accuracy: float = 0.0
    length_bonus: float = 0.0


class OsuPerformanceAttributes(PerformanceAttributes):
    aim: float = 0.0
    tapping: float = 0.0
    reading: float = 0.0
    accuracy: float = 0.0
    effective_miss_count: float = 0.0
    estimated_unstable_rate: Optional[float] = None
