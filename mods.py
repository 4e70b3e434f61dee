import math
import re
from dataclasses import dataclass
from enum import Enum

from hit_objects import BeatmapDifficulty


class ModError(ValueError):
    """The modifier combination handed to the engine is malformed."""


class Mod(Enum):
    NM = "NM"
    EZ = "EZ"
    NF = "NF"
    HT = "HT"
    DC = "DC"
    HR = "HR"
    DT = "DT"
    NC = "NC"
    HD = "HD"
    FL = "FL"
    RX = "RX"
    AP = "AP"
    TD = "TD"


SPEED_UP = (Mod.DT, Mod.NC)
SLOW_DOWN = (Mod.HT, Mod.DC)
DEFAULT_SPEED_CHANGE = {Mod.DT: 1.5, Mod.NC: 1.5, Mod.HT: 0.75, Mod.DC: 0.75}

_ACRONYM = re.compile(r"[A-Za-z]{2}")


def parse_acronyms(text):
    """'HDDT' / 'hd,dt' / 'HD DT' -> [Mod.HD, Mod.DT]"""
    cleaned = re.sub(r"[\s,+]", "", text or "")
    if len(cleaned) % 2:
        raise ModError(f"cannot split {text!r} into two-letter mod acronyms")
    mods = []
    for acronym in _ACRONYM.findall(cleaned):
        try:
            mods.append(Mod(acronym.upper()))
        except ValueError:
            raise ModError(f"unknown mod acronym {acronym!r}") from None
    return mods


@dataclass(frozen=True)
class ModifierSet:
    """
    Resolved modifiers for one rating request. `clock_rate` is the single effective
    rate; at most one rate-changing mod may be present.
    """
    mods: frozenset = frozenset()
    clock_rate: float = 1.0

    def __post_init__(self):
        object.__setattr__(self, "mods", frozenset(m for m in self.mods if m is not Mod.NM))
        rate_mods = [m for m in self.mods if m in SPEED_UP + SLOW_DOWN]
        if len(rate_mods) > 1:
            raise ModError(f"conflicting rate-changing mods: {sorted(m.value for m in rate_mods)}")
        if Mod.EZ in self.mods and Mod.HR in self.mods:
            raise ModError("EZ and HR cannot be combined")
        if Mod.RX in self.mods and Mod.AP in self.mods:
            raise ModError("RX and AP cannot be combined")
        rate = self.clock_rate
        if rate is None or math.isnan(rate) or math.isinf(rate) or rate <= 0:
            raise ModError(f"clock rate must be a positive finite number, got {rate!r}")
        if rate_mods:
            mod = rate_mods[0]
            if (mod in SPEED_UP and rate <= 1) or (mod in SLOW_DOWN and rate >= 1):
                raise ModError(f"{mod.value} requires a matching speed change, got {rate}")
        elif rate != 1.0:
            raise ModError("a clock rate other than 1.0 needs a rate-changing mod")

    @classmethod
    def from_acronyms(cls, acronyms, speed_change=None):
        if isinstance(acronyms, str):
            acronyms = parse_acronyms(acronyms)
        try:
            mods = frozenset(m if isinstance(m, Mod) else Mod(m) for m in acronyms)
        except ValueError:
            raise ModError(f"unknown mod acronym in {list(acronyms)!r}") from None
        rate = 1.0
        for mod in mods:
            if mod in DEFAULT_SPEED_CHANGE:
                rate = DEFAULT_SPEED_CHANGE[mod] if speed_change is None else speed_change
        if speed_change is not None and rate == 1.0 and speed_change != 1.0:
            raise ModError("speed change given without a rate-changing mod")
        return cls(mods, rate)

    def __contains__(self, mod):
        return mod in self.mods

    def any_of(self, *mods):
        return any(m in self.mods for m in mods)

    @property
    def acronyms(self):
        # Enum declaration order keeps the tuple stable for cache keys.
        return tuple(m.value for m in Mod if m in self.mods)

    def adjust_difficulty(self, difficulty):
        """Apply HR / EZ scaling to the chart's difficulty settings."""
        if Mod.HR in self.mods:
            return BeatmapDifficulty(
                approach_rate=min(difficulty.approach_rate * 1.4, 10.0),
                overall_difficulty=min(difficulty.overall_difficulty * 1.4, 10.0),
                circle_size=min(difficulty.circle_size * 1.3, 10.0),
                drain_rate=min(difficulty.drain_rate * 1.4, 10.0),
            )
        if Mod.EZ in self.mods:
            return BeatmapDifficulty(
                approach_rate=difficulty.approach_rate * 0.5,
                overall_difficulty=difficulty.overall_difficulty * 0.5,
                circle_size=difficulty.circle_size * 0.5,
                drain_rate=difficulty.drain_rate * 0.5,
            )
        return difficulty


NO_MOD = ModifierSet()
