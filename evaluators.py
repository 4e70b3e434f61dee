import math
from dataclasses import dataclass

import numpy as np

from difficulty_utils import difficulty_range, logistic, preempt_to_approach_rate
from mods import Mod

# -----Aim / tapping spacing constants--------
AIM_TIMING_THRESHOLD = 107.0
AIM_ANGLE_BONUS_BEGIN = math.pi / 3
ANGLE_BONUS_SCALE = 90.0
MIN_SPEED_BONUS = 75.0  # ~200BPM 1/4 streams
MAX_SPEED_BONUS = 45.0  # ~330BPM 1/4 streams
SPEED_ANGLE_BONUS_BEGIN = 5 * math.pi / 6
# spacing past which a stream is hard to alternate
SINGLE_SPACING = 125.0

RHYTHM_WINDOW = 8

# -----Reading constants--------
HIDDEN_AR_SCALE = 0.15
LOW_AR_SCALE = 0.05
HIGH_AR_SCALE = 0.3
HIGH_AR_THRESHOLD = 10.33
AR_CURVE_CEILING = 13.0

# -----Taiko reading constants--------
HIGH_VELOCITY_MIN = 270.0
HIGH_VELOCITY_MAX = 550.0


def _lacks_lookback(current, min_index=2):
    if current.index < min_index or not current.is_interactive:
        return True
    last = current.previous(0)
    return last is None or not last.is_interactive


def evaluate_aim(mods, current):
    """Spacing weight of the jump into `current`, with a bonus for wide angles."""
    if _lacks_lookback(current):
        return 0.0

    last = current.previous(0)
    distance = current.jump_distance
    result = 0.0
    if current.angle is not None and current.angle > AIM_ANGLE_BONUS_BEGIN:
        angle_bonus = math.sqrt(
            max(last.jump_distance - ANGLE_BONUS_SCALE, 0.0) *
            math.sin(current.angle - AIM_ANGLE_BONUS_BEGIN) ** 2 *
            max(distance - ANGLE_BONUS_SCALE, 0.0)
        )
        result = 1.5 * angle_bonus ** 0.99 / max(AIM_TIMING_THRESHOLD, last.strain_time)

    weighted_distance = distance ** 0.99
    return max(result + weighted_distance / max(AIM_TIMING_THRESHOLD, current.strain_time),
               weighted_distance / current.strain_time)


def evaluate_tapping(mods, current):
    """Single-tap / alternate pressure from spacing in time, angle and distance."""
    if _lacks_lookback(current):
        return 0.0

    distance = min(current.jump_distance, SINGLE_SPACING)
    delta_time = max(current.strain_time, MAX_SPEED_BONUS)

    speed_bonus = 1.0
    if delta_time < MIN_SPEED_BONUS:
        speed_bonus += ((MIN_SPEED_BONUS - delta_time) / 40.0) ** 2

    angle = current.angle
    angle_bonus = 1.0
    if angle is not None and angle < SPEED_ANGLE_BONUS_BEGIN:
        s = math.sin(1.5 * (SPEED_ANGLE_BONUS_BEGIN - angle))
        angle_bonus += s * s / 3.57
        if angle < math.pi / 2.0:
            angle_bonus = 1.28
            if distance < ANGLE_BONUS_SCALE and angle < math.pi / 4.0:
                angle_bonus += (1.0 - angle_bonus) * min((ANGLE_BONUS_SCALE - distance) / 10.0, 1.0)
            elif distance < ANGLE_BONUS_SCALE:
                angle_bonus += ((1.0 - angle_bonus) *
                                min((ANGLE_BONUS_SCALE - distance) / 10.0, 1.0) *
                                math.sin((math.pi / 2.0 - angle) * 4.0 / math.pi))

    return ((1 + (speed_bonus - 1) * 0.75) * angle_bonus *
            (0.95 + speed_bonus * (distance / SINGLE_SPACING) ** 3.5)) / current.strain_time


def rao_quadratic_entropy(values):
    """Q = sum_{i,j} p_i p_j log1p(|x_i - x_j|) over the distinct values."""
    unique, counts = np.unique(np.asarray(values), return_counts=True)
    p = counts / counts.sum()
    dist_matrix = np.log1p(np.abs(unique[:, None] - unique[None, :]))
    return float(np.sum(np.outer(p, p) * dist_matrix))


def evaluate_rhythm(mods, current):
    """Variety of the recent inter-object gaps; a steady stream scores 0."""
    if _lacks_lookback(current):
        return 0.0

    gaps = [int(current.strain_time)]
    for i in range(RHYTHM_WINDOW - 1):
        obj = current.previous_interactive(i)
        if obj is None or obj.index == 0:
            break
        gaps.append(int(obj.strain_time))
    if len(gaps) < 2:
        return 0.0
    return rao_quadratic_entropy(gaps)


@dataclass(frozen=True)
class ReadingContext:
    """Per-call values the reading curves share, derived from mods and the object."""
    clock_rate: float
    hidden: bool
    nominal_preempt: float
    preempt: float

    @classmethod
    def create(cls, mods, current):
        nominal = difficulty_range(current.approach_rate, 1800, 1200, 450)
        return cls(
            clock_rate=mods.clock_rate,
            hidden=Mod.HD in mods,
            nominal_preempt=nominal,
            preempt=nominal / mods.clock_rate,
        )

    @property
    def approach_rate(self):
        """Approach rate as the player perceives it at the active clock rate."""
        return preempt_to_approach_rate(self.preempt)


def approach_rate_curve(context):
    approach_rate = context.approach_rate
    if context.hidden:
        curve = HIDDEN_AR_SCALE * (AR_CURVE_CEILING - approach_rate)
    elif approach_rate < HIGH_AR_THRESHOLD:
        curve = LOW_AR_SCALE * (AR_CURVE_CEILING - approach_rate)
    else:
        curve = HIGH_AR_SCALE * (approach_rate - HIGH_AR_THRESHOLD)
    return max(curve, 0.0)


def density_of(context, current):
    return context.nominal_preempt / current.strain_time


def evaluate_reading(mods, current):
    """
    Visual density of an object: how hard it is to read given how long it is
    visible and how many objects share the screen with it.
    The overlap term is neutral and left out of the product.
    """
    if _lacks_lookback(current):
        return 0.0

    context = ReadingContext.create(mods, current)
    return (1.0 + approach_rate_curve(context)) * (1.0 + density_of(context, current))


def evaluate_taiko_reading(mods, current):
    """
    Influence of scroll velocity on a note, from its effective BPM and note density.
    Dense notes are penalised and very dense notes are rewarded.
    """
    if _lacks_lookback(current, min_index=1):
        return 0.0

    effective_bpm = max(1.0, current.effective_bpm)
    # deltatime this note would need to be spaced like a base SV 1/4 note at this BPM
    expected_delta_time = 21000.0 / effective_bpm
    density = expected_delta_time / max(1.0, current.delta_time)

    high_density_penalty = logistic(density, 1.0, 9.0)
    very_high_density_bonus = logistic(density, 4.0, 4.0)

    center = (HIGH_VELOCITY_MAX + HIGH_VELOCITY_MIN) / 2
    velocity_range = HIGH_VELOCITY_MAX - HIGH_VELOCITY_MIN
    midpoint_offset = center / (1.0 + 9.0 * very_high_density_bonus)
    multiplier = (5.0 * (1.0 - 0.45 * high_density_penalty) *
                  (1.0 + 2.0 * very_high_density_bonus) / velocity_range)

    reading = (logistic(effective_bpm, midpoint_offset, multiplier) ** (2.5 + 2.0 * high_density_penalty)
               * (1.0 - 0.75 * very_high_density_bonus) + 0.75 * very_high_density_bonus)
    return float(reading * 1.5)
