import math

import numpy as np
from scipy import special


def logistic(x, midpoint_offset, multiplier, max_value=1.0):
    """
    Logistic curve shared by every evaluator:
      max_value / (1 + exp(-multiplier * (x - midpoint_offset)))
    Works on scalars and numpy arrays alike.
    """
    return max_value / (1 + np.exp(multiplier * (midpoint_offset - x)))


def difficulty_range(difficulty, minimum, mid, maximum):
    """Map a 0-10 difficulty setting onto a value, linear on [0, 5] and [5, 10]."""
    if difficulty > 5:
        return mid + (maximum - mid) * (difficulty - 5) / 5
    if difficulty < 5:
        return mid - (mid - minimum) * (5 - difficulty) / 5
    return mid


def power_mean(values, exponent=1.1):
    """(sum v^p)^(1/p), used both for star rating and for total performance."""
    return math.pow(sum(math.pow(v, exponent) for v in values), 1.0 / exponent)


def erf(x):
    return float(special.erf(x))


def erf_inv(x):
    return float(special.erfinv(x))


def preempt_to_approach_rate(preempt):
    if preempt > 1200:
        return (1800 - preempt) / 120
    return (1200 - preempt) / 150 + 5
