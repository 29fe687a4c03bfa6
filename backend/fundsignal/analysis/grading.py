"""Shared grading utilities for converting scores to signals and confidence levels."""
import math


def score_to_signal(score: float) -> str:
    if score >= 70:
        return "BUY"
    elif score >= 55:
        return "WATCH"
    elif score >= 40:
        return "HOLD"
    else:
        return "AVOID"


def coverage_to_confidence(coverage: float) -> str:
    if coverage >= 0.7:
        return "HIGH"
    elif coverage >= 0.35:
        return "MED"
    else:
        return "LOW"


def is_num(value) -> bool:
    """True for finite ints/floats. NaN, inf, bools and strings are treated as absent."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (math.isnan(value) or math.isinf(value))


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """2.5 -> 3, -2.5 -> -2. Python's round() would give 2 for 2.5."""
    return math.floor(value + 0.5)


def scale_linear(value: float, x0: float, x1: float) -> float:
    """x0 -> 0, x1 -> 1, clamped outside the range."""
    return clamp((value - x0) / (x1 - x0), 0, 1)


def scale_inverse(value: float, best: float, worst: float) -> float:
    """best -> 1, worst -> 0, clamped. Lower is better."""
    return clamp((worst - value) / (worst - best), 0, 1)
