import math
from dataclasses import dataclass, field
from enum import Enum, IntEnum


class InvalidHitObjectError(ValueError):
    """A hit object carries a time the engine cannot work with."""


class ObjectKind(Enum):
    NORMAL = "normal"  # circle / single note
    SPANNING = "spanning"  # slider / hold note / drum roll
    NON_INTERACTIVE = "non_interactive"  # spinner


class Ruleset(IntEnum):
    OSU = 0
    TAIKO = 1
    CATCH = 2
    MANIA = 3


@dataclass(frozen=True)
class TimedObject:
    start_time: float
    end_time: float = None
    x: float = 0.0
    y: float = 0.0
    kind: ObjectKind = ObjectKind.NORMAL
    repeat_count: int = 0
    # Governing timing point, used for effective BPM.
    beat_length: float = 500.0
    slider_velocity: float = 1.0

    def __post_init__(self):
        if self.end_time is None:
            object.__setattr__(self, "end_time", self.start_time)
        for name in ("start_time", "end_time"):
            value = getattr(self, name)
            if math.isnan(value) or value < 0:
                raise InvalidHitObjectError(f"{name} must be a non-negative number, got {value!r}")
        if not self.beat_length > 0:
            raise InvalidHitObjectError(f"beat_length must be positive, got {self.beat_length!r}")
        if self.end_time < self.start_time:
            raise InvalidHitObjectError(
                f"end_time {self.end_time} is before start_time {self.start_time}")

    @property
    def is_interactive(self):
        return self.kind is not ObjectKind.NON_INTERACTIVE

    @property
    def combo(self):
        # Slider head, every repeat and the tail each count once.
        if self.kind is ObjectKind.SPANNING:
            return 2 + self.repeat_count
        return 1


@dataclass(frozen=True)
class BeatmapDifficulty:
    approach_rate: float = 5.0
    overall_difficulty: float = 5.0
    circle_size: float = 5.0
    drain_rate: float = 5.0


@dataclass(frozen=True)
class Chart:
    objects: tuple = ()
    difficulty: BeatmapDifficulty = field(default_factory=BeatmapDifficulty)
    ruleset: Ruleset = Ruleset.OSU
    title: str = ""

    def count(self, kind):
        return sum(1 for o in self.objects if o.kind is kind)

    @property
    def max_combo(self):
        return sum(o.combo for o in self.objects)
