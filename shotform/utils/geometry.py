"""
geometry.py
──────────────────────────────────────────────────────────────────────────────
Pure 2-D helpers over keypoints.

Points may be anything with ``.x`` / ``.y`` attributes (``Landmark``) or a
plain ``(x, y)`` sequence.  Screen coordinates: y grows downward.

No state, no side effects.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, Optional, Tuple

# Landmark-like object or (x, y) sequence
PointLike = Any

# denominator guard for zero-length rays
_EPS = 1e-6


def _xy(p) -> Tuple[float, float]:
    if hasattr(p, "x") and hasattr(p, "y"):
        return float(p.x), float(p.y)
    return float(p[0]), float(p[1])


# ──────────────────────────────────────────────────────────────────────────────
# Angles
# ──────────────────────────────────────────────────────────────────────────────

def angle(a: Optional[PointLike], b: Optional[PointLike], c: Optional[PointLike]) -> Optional[float]:
    """
    Angle at vertex ``b`` (degrees, 0..180) between rays b→a and b→c.

    Returns ``None`` when any of the three points is missing, or when either
    ray has zero length (an outer point sits on the vertex).
    """
    if a is None or b is None or c is None:
        return None
    ax, ay = _xy(a)
    bx, by = _xy(b)
    cx, cy = _xy(c)
    ba = (ax - bx, ay - by)
    bc = (cx - bx, cy - by)
    len_ba, len_bc = math.hypot(*ba), math.hypot(*bc)
    if len_ba < _EPS or len_bc < _EPS:
        return None
    cos_val = (ba[0]*bc[0] + ba[1]*bc[1]) / (len_ba * len_bc + _EPS)
    return math.degrees(math.acos(max(-1.0, min(1.0, cos_val))))


def incline_from_vertical(a: Optional[PointLike], b: Optional[PointLike]) -> Optional[float]:
    """Unsigned angle (degrees) of vector a→b against screen-up."""
    if a is None or b is None:
        return None
    ax, ay = _xy(a)
    bx, by = _xy(b)
    dx, dy = bx - ax, by - ay
    if math.hypot(dx, dy) < _EPS:
        return None
    # flip y so "up" is the positive axis
    return abs(math.degrees(math.atan2(dx, -dy)))


# ──────────────────────────────────────────────────────────────────────────────
# Scalars
# ──────────────────────────────────────────────────────────────────────────────

def distance(a: Optional[PointLike], b: Optional[PointLike]) -> Optional[float]:
    if a is None or b is None:
        return None
    ax, ay = _xy(a)
    bx, by = _xy(b)
    return math.hypot(bx - ax, by - ay)


def midpoint(a: Optional[PointLike], b: Optional[PointLike]) -> Optional[Tuple[float, float]]:
    if a is None or b is None:
        return None
    ax, ay = _xy(a)
    bx, by = _xy(b)
    return (ax + bx) / 2, (ay + by) / 2


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def avg(xs: Iterable[float]) -> float:
    """Arithmetic mean; 0.0 for an empty input."""
    xs = list(xs)
    return sum(xs) / max(1, len(xs))
