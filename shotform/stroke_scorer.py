"""
stroke_scorer.py
──────────────────────────────────────────────────────────────────────────────
0-100 form score for one shot, broken down into three chains:

  lower chain    – knee dip depth, knee extension rate
  upper release  – release angle, wrist drive, follow-through hold,
                   elbow path compactness
  align/balance  – body stability, shooting-line alignment

Each metric is scored against a reference baseline with one of two curves:

  around       100 · (1 − clamp01(|v − base| / span))
  smaller      100 · (1 − clamp01((|v − base| / base) / tol))   (0 if base ≤ 0)

Pure functions only; missing or non-finite inputs score 0 for their term.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# Inputs
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class StrokeMetrics:
    knee_depth_deg: Optional[float] = None
    knee_extend_deg_per_sec: Optional[float] = None
    release_angle_deg: Optional[float] = None
    wrist_drive_deg: Optional[float] = None
    follow_hold_sec: Optional[float] = None
    elbow_compact_pct: Optional[float] = None
    align_pct: Optional[float] = None
    stability_pct: Optional[float] = None

    def to_dict(self) -> Dict[str, Optional[float]]:
        return dataclasses.asdict(self)


@dataclass(frozen=True)
class Baseline:
    """Reference form.  ``stability_pct=None`` borrows ``align_pct``."""
    knee_depth_deg: float = 116.36
    knee_extend_deg_per_sec: float = 121.13
    release_angle_deg: float = 32.60
    wrist_drive_deg: float = 0.0
    follow_hold_sec: float = 0.47
    elbow_compact_pct: float = 0.0003
    align_pct: float = 0.0003
    stability_pct: Optional[float] = None

    def with_overrides(self, overrides: Optional[Mapping[str, Any]]) -> "Baseline":
        if not overrides:
            return self
        known = {f.name for f in dataclasses.fields(self)}
        accepted = {}
        for key, value in overrides.items():
            if key not in known:
                logger.warning("ignoring unknown baseline key %r", key)
                continue
            accepted[key] = value
        return dataclasses.replace(self, **accepted)


DEFAULT_BASELINE = Baseline()

# Absolute spans (closer-is-better)
SPAN_KNEE_DEPTH_DEG    = 30.0
SPAN_KNEE_EXTEND_DPS   = 60.0
SPAN_RELEASE_ANGLE_DEG = 20.0
SPAN_WRIST_DRIVE_DEG   = 30.0
SPAN_FOLLOW_HOLD_SEC   = 0.6

# Relative tolerances (smaller-is-better)
TOL_ELBOW_COMPACT = 0.8
TOL_ALIGN         = 1.0
TOL_BALANCE       = 1.0


# ──────────────────────────────────────────────────────────────────────────────
# Output
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class LowerChain:
    depth: int
    extend: int
    total: int


@dataclass(frozen=True)
class UpperRelease:
    angle: int
    wrist: int
    follow: int
    elbow_compact: int
    total: int


@dataclass(frozen=True)
class AlignBalance:
    balance: int
    align: int
    total: int


@dataclass(frozen=True)
class ScoreDetail:
    lower_chain: LowerChain
    upper_release: UpperRelease
    align_balance: AlignBalance
    overall: int

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)


# ──────────────────────────────────────────────────────────────────────────────
# Curves
# ──────────────────────────────────────────────────────────────────────────────

def _round(x: float) -> int:
    # half-up, not banker's rounding
    return int(math.floor(x + 0.5))


def _clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def _num(v: Any) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return math.nan


def score_around(value: Any, base: Any, span: float) -> int:
    """Linear falloff from 100 at ``base`` to 0 at ``span`` away."""
    value, base = _num(value), _num(base)
    if not (math.isfinite(value) and math.isfinite(base)):
        return 0
    d = abs(value - base)
    return _round(100 * (1 - _clamp01(d / max(span, 1e-9))))


def score_smaller_is_better(value: Any, base: Any, rel_tol: float) -> int:
    """Relative-error falloff; zero when there is no positive baseline."""
    value, base = _num(value), _num(base)
    if not (math.isfinite(value) and math.isfinite(base)) or base <= 0:
        return 0
    rel_err = abs(value - base) / base
    return _round(100 * (1 - _clamp01(rel_err / max(rel_tol, 1e-6))))


def _abs_or_none(v: Any) -> Optional[float]:
    v = _num(v)
    return abs(v) if math.isfinite(v) else None


# ──────────────────────────────────────────────────────────────────────────────
# Entry point
# ──────────────────────────────────────────────────────────────────────────────

def score_stroke(
    metrics: Union[StrokeMetrics, Mapping[str, Any]],
    baseline_overrides: Optional[Mapping[str, Any]] = None,
) -> ScoreDetail:
    """
    Score one shot's metrics.

    Parameters
    ──────────
    metrics            : StrokeMetrics or a mapping with the same field names
    baseline_overrides : optional mapping with :class:`Baseline` field names

    Returns
    ───────
    ScoreDetail - never raises on partial or garbage metrics.
    """
    if isinstance(metrics, Mapping):
        m = dict(metrics)
    else:
        m = metrics.to_dict()
    base = DEFAULT_BASELINE.with_overrides(baseline_overrides)

    # Lower chain
    depth  = score_around(m.get("knee_depth_deg"), base.knee_depth_deg, SPAN_KNEE_DEPTH_DEG)
    extend = score_around(m.get("knee_extend_deg_per_sec"),
                          base.knee_extend_deg_per_sec, SPAN_KNEE_EXTEND_DPS)
    lower  = LowerChain(depth, extend, _round(0.5*depth + 0.5*extend))

    # Upper release
    ang    = score_around(m.get("release_angle_deg"), base.release_angle_deg, SPAN_RELEASE_ANGLE_DEG)
    wrist  = score_around(m.get("wrist_drive_deg"), base.wrist_drive_deg, SPAN_WRIST_DRIVE_DEG)
    follow = score_around(m.get("follow_hold_sec"), base.follow_hold_sec, SPAN_FOLLOW_HOLD_SEC)
    elbow  = score_smaller_is_better(_abs_or_none(m.get("elbow_compact_pct")),
                                     base.elbow_compact_pct, TOL_ELBOW_COMPACT)
    upper  = UpperRelease(
        ang, wrist, follow, elbow,
        _round(0.35*ang + 0.25*wrist + 0.15*follow + 0.25*elbow),
    )

    # Alignment & balance
    stab_base = base.stability_pct if base.stability_pct is not None else base.align_pct
    balance = score_smaller_is_better(_abs_or_none(m.get("stability_pct")), stab_base, TOL_BALANCE)
    align   = score_smaller_is_better(_abs_or_none(m.get("align_pct")), base.align_pct, TOL_ALIGN)
    align_balance = AlignBalance(balance, align, _round(0.6*balance + 0.4*align))

    overall = _round(0.4*lower.total + 0.35*upper.total + 0.25*align_balance.total)
    return ScoreDetail(lower, upper, align_balance, overall)
