"""Math helpers — tolerant comparisons. No engine imports."""

from __future__ import annotations


def almost_the_same(a: float, b: float, tolerance: float) -> bool:
    """True if a and b differ by less than ``tolerance`` relative to their mean magnitude.

    Used to decide whether anisotropic pixel calibration can take the
    uniform-scale shortcut.
    """
    if a == b:
        return True
    return abs(a - b) < tolerance * (abs(a) + abs(b)) * 0.5
