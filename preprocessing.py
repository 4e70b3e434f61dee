import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from hit_objects import ObjectKind, TimedObject

logger = logging.getLogger(__name__)

MIN_DELTA_TIME = 25.0
PLAYFIELD_WIDTH = 512.0
NORMALISED_RADIUS = 52.0
# non-normalized radius where the small circle size buff starts
CIRCLESIZE_BUFF_THRESHOLD = 30.0


@dataclass(frozen=True)
class DerivedObject:
    """
    One per TimedObject, in timeline order. Times are divided by the clock rate.
    Lookback goes through `previous()` which indexes into the shared, append-only
    sequence; a record never refers to anything after itself.
    """
    index: int
    base: TimedObject
    start_time: float
    end_time: float
    delta_time: float
    strain_time: float
    position: Tuple[float, float]
    jump_distance: float
    angle: Optional[float]
    approach_rate: float
    effective_bpm: float
    _sequence: List["DerivedObject"] = field(repr=False, compare=False)

    @property
    def kind(self):
        return self.base.kind

    @property
    def is_interactive(self):
        return self.base.is_interactive

    def previous(self, backwards_index):
        i = self.index - (backwards_index + 1)
        return self._sequence[i] if i >= 0 else None

    def previous_interactive(self, backwards_index):
        """Like previous(), but non-interactive objects are not counted."""
        remaining = backwards_index
        for i in range(self.index - 1, -1, -1):
            obj = self._sequence[i]
            if not obj.is_interactive:
                continue
            if remaining == 0:
                return obj
            remaining -= 1
        return None


def scaling_factor(circle_size):
    """Positions are normalized on circle radius so every circle size is rated alike."""
    radius = (PLAYFIELD_WIDTH / 16.0) * (1.0 - 0.7 * (circle_size - 5.0) / 5.0)
    factor = NORMALISED_RADIUS / radius
    # low cs buff
    if radius < CIRCLESIZE_BUFF_THRESHOLD:
        factor *= 1.0 + min(CIRCLESIZE_BUFF_THRESHOLD - radius, 5.0) / 50.0
    return factor


def compute_angle(previous_previous, previous, current):
    v1 = (previous_previous.position[0] - previous.position[0],
          previous_previous.position[1] - previous.position[1])
    v2 = (current[0] - previous.position[0], current[1] - previous.position[1])
    dot = v1[0] * v2[0] + v1[1] * v2[1]
    det = v1[0] * v2[1] - v1[1] * v2[0]
    return abs(math.atan2(det, dot))


def sequence(objects, mods, difficulty):
    """
    Build the derived sequence for an ordered list of TimedObjects.
    An empty input gives an empty list; callers treat that as zero difficulty.
    """
    clock_rate = mods.clock_rate
    difficulty = mods.adjust_difficulty(difficulty)
    scale = scaling_factor(difficulty.circle_size)

    derived = []
    for i, obj in enumerate(objects):
        if i > 0 and obj.start_time < objects[i - 1].start_time:
            logger.warning("object %d starts before its predecessor (%s < %s)",
                           i, obj.start_time, objects[i - 1].start_time)
        start_time = obj.start_time / clock_rate
        delta_time = start_time - derived[-1].start_time if derived else 0.0
        position = (obj.x * scale, obj.y * scale)

        prev_interactive = None
        prev_prev_interactive = None
        for candidate in reversed(derived):
            if not candidate.is_interactive:
                continue
            if prev_interactive is None:
                prev_interactive = candidate
            else:
                prev_prev_interactive = candidate
                break

        jump_distance = 0.0
        angle = None
        if obj.kind is not ObjectKind.NON_INTERACTIVE and prev_interactive is not None:
            jump_distance = math.hypot(position[0] - prev_interactive.position[0],
                                       position[1] - prev_interactive.position[1])
            if prev_prev_interactive is not None:
                angle = compute_angle(prev_prev_interactive, prev_interactive, position)

        derived.append(DerivedObject(
            index=i,
            base=obj,
            start_time=start_time,
            end_time=obj.end_time / clock_rate,
            delta_time=delta_time,
            strain_time=max(delta_time, MIN_DELTA_TIME),
            position=position,
            jump_distance=jump_distance,
            angle=angle,
            approach_rate=difficulty.approach_rate,
            effective_bpm=60000.0 / obj.beat_length * obj.slider_velocity * clock_rate,
            _sequence=derived,
        ))

    logger.debug("sequenced %d objects at clock rate %s", len(derived), clock_rate)
    return derived
