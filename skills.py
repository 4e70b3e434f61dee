import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable

import numpy as np

import evaluators
from difficulty_utils import logistic

SECTION_LENGTH = 400.0
DECAY_WEIGHT = 0.9
# Fewer positive peaks than this leave the percentile bands empty.
MIN_CONSISTENCY_PEAKS = 10


@dataclass(frozen=True)
class SkillDefinition:
    name: str
    evaluator: Callable
    strain_decay_base: float
    skill_multiplier: float
    decay_weight: float = DECAY_WEIGHT
    section_length: float = SECTION_LENGTH


AIM = SkillDefinition("aim", evaluators.evaluate_aim, 0.15, 26.25)
TAPPING = SkillDefinition("tapping", evaluators.evaluate_tapping, 0.3, 1400.0)
RHYTHM = SkillDefinition("rhythm", evaluators.evaluate_rhythm, 0.3, 1.0)
READING = SkillDefinition("reading", evaluators.evaluate_reading, 0.15, 1.0)
TAIKO_READING = SkillDefinition("taiko_reading", evaluators.evaluate_taiko_reading, 0.4, 1.0)

OSU_SKILLS = (AIM, TAPPING, RHYTHM, READING)


class SkillState(Enum):
    EMPTY = "empty"
    ACCUMULATING = "accumulating"
    FINALIZED = "finalized"


class StrainSkill:
    """
    Decaying strain accumulator shared by every skill. Objects must be fed in
    timeline order; the peak of every `section_length` bucket is recorded.
    """

    def __init__(self, definition, mods):
        self.definition = definition
        self.mods = mods
        self.state = SkillState.EMPTY
        self.current_strain = 0.0
        self.object_strains = []
        self._strain_peaks = []
        self._current_section_peak = 0.0
        self._current_section_end = 0.0

    @property
    def name(self):
        return self.definition.name

    def strain_decay(self, ms):
        return math.pow(self.definition.strain_decay_base, ms / 1000)

    def strain_value_at(self, current):
        self.current_strain *= self.strain_decay(current.delta_time)
        self.current_strain += self.definition.evaluator(self.mods, current) * self.definition.skill_multiplier
        return self.current_strain

    def calculate_initial_strain(self, time, current):
        previous = current.previous(0)
        return self.current_strain * self.strain_decay(time - previous.start_time)

    def process(self, current):
        if self.state is SkillState.FINALIZED:
            raise RuntimeError(f"{self.name} skill is finalized and cannot take more objects")

        section_length = self.definition.section_length
        if self.state is SkillState.EMPTY:
            self._current_section_end = math.ceil(current.start_time / section_length) * section_length
            self.state = SkillState.ACCUMULATING

        while current.start_time > self._current_section_end:
            self._strain_peaks.append(self._current_section_peak)
            # the next section starts from the previous object's strain, decayed to the boundary
            self._current_section_peak = self.calculate_initial_strain(self._current_section_end, current)
            self._current_section_end += section_length

        strain = self.strain_value_at(current)
        self.object_strains.append(strain)
        self._current_section_peak = max(strain, self._current_section_peak)

    def finalize(self):
        if self.state is SkillState.ACCUMULATING:
            self._strain_peaks.append(self._current_section_peak)
        self.state = SkillState.FINALIZED

    def current_strain_peaks(self):
        if self.state is not SkillState.FINALIZED:
            return self._strain_peaks + [self._current_section_peak]
        return list(self._strain_peaks)

    def _sorted_peaks(self):
        # Sections with 0 strain cannot contribute and are dropped before the sort.
        peaks = np.array([p for p in self.current_strain_peaks() if p > 0], dtype=float)
        return np.sort(peaks)[::-1]

    def difficulty_value(self):
        """Weighted sum of the section peaks, highest first."""
        peaks = self._sorted_peaks()
        weights = self.definition.decay_weight ** np.arange(len(peaks))
        difficulty = 0.0
        for strain, weight in zip(peaks, weights):
            difficulty += strain * weight
        return float(difficulty)

    def consistency_factor(self):
        """
        Mean of the middle 20% of peaks over the mean of the top 20%.
        1.0 when there are too few peaks to form both bands.
        """
        peaks = self._sorted_peaks()
        band = len(peaks) // 10 * 2
        if len(peaks) < MIN_CONSISTENCY_PEAKS or band == 0:
            return 1.0
        hard = peaks[:band]
        middle = peaks[len(peaks) // 10 * 4:len(peaks) // 10 * 4 + band]
        return float(np.mean(middle) / np.mean(hard))

    def count_top_weighted_strains(self):
        """How many objects strain close to the map's consistent top strain."""
        if not self.object_strains:
            return 0.0
        consistent_top_strain = self.difficulty_value() / 10
        if consistent_top_strain == 0:
            return float(len(self.object_strains))
        strains = np.array(self.object_strains)
        return float(np.sum(logistic(strains / consistent_top_strain, 0.88, 10.0, max_value=1.1)))

    def relevant_note_count(self):
        if not self.object_strains:
            return 0.0
        strains = np.array(self.object_strains)
        max_strain = strains.max()
        if max_strain == 0:
            return 0.0
        return float(np.sum(logistic(strains / max_strain, 0.5, 12.0)))


def run_skills(derived, definitions, mods):
    """Feed the whole derived sequence through one accumulator per definition."""
    skills = [StrainSkill(d, mods) for d in definitions]
    for current in derived:
        for skill in skills:
            skill.process(current)
    for skill in skills:
        skill.finalize()
    return {skill.name: skill for skill in skills}


def difficulty_to_performance(difficulty):
    return math.pow(5.0 * max(1.0, difficulty / 0.0675) - 4.0, 3.0) / 100000.0
