"""
Biomechanical metrics for one finished shot attempt.

Every function works off the per-frame :class:`PoseSample` list the detector
records while an attempt is in flight.  Samples up to and including the
release frame are the *gather* phase; samples from release on are the
*follow-through* phase.

Each metric is ``None`` when the frames it needs were not seen.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import numpy as np

from .config import FOLLOW_THROUGH_ELBOW_DEG
from .shot_detector import PoseSample, ShotAttempt
from .stroke_scorer import StrokeMetrics
from .utils.geometry import incline_from_vertical

logger = logging.getLogger(__name__)


def _gather(samples: Sequence[PoseSample], t_release: Optional[float]) -> List[PoseSample]:
    if t_release is None:
        return list(samples)
    return [s for s in samples if s.t <= t_release]


def _follow(samples: Sequence[PoseSample], t_release: Optional[float]) -> List[PoseSample]:
    if t_release is None:
        return []
    return [s for s in samples if s.t >= t_release]


def _mean_torso(samples: Sequence[PoseSample]) -> Optional[float]:
    lens = [s.torso_len for s in samples if s.torso_len]
    return float(np.mean(lens)) if lens else None


def knee_depth(samples: Sequence[PoseSample], t_release: Optional[float]) -> Optional[float]:
    """Deepest knee angle before release, in degrees."""
    knees = [s.knee_angle for s in _gather(samples, t_release) if s.knee_angle is not None]
    return float(min(knees)) if knees else None


def knee_extension_rate(samples: Sequence[PoseSample], t_release: Optional[float]) -> Optional[float]:
    """Mean angular velocity (°/s) from the deepest dip to the release frame.

    Returns
    -------
    float or None
        None before release, or when the dip and release share a timestamp.
    """
    if t_release is None:
        return None
    gather = [s for s in _gather(samples, t_release) if s.knee_angle is not None]
    if not gather:
        return None
    low = min(gather, key=lambda s: s.knee_angle)
    at_release = gather[-1]
    dt = at_release.t - low.t
    if dt <= 0:
        return None
    return float((at_release.knee_angle - low.knee_angle) / dt)


def _release_sample(samples: Sequence[PoseSample], t_release: Optional[float]) -> Optional[PoseSample]:
    if t_release is None:
        return None
    for s in samples:
        if s.t == t_release:
            return s
    return None


def release_angle(samples: Sequence[PoseSample], t_release: Optional[float]) -> Optional[float]:
    """Shoulder→wrist incline from vertical at release."""
    s = _release_sample(samples, t_release)
    if s is None:
        return None
    return incline_from_vertical(s.shoulder, s.wrist)


def wrist_drive(release_elbow_angle_deg: Optional[float]) -> Optional[float]:
    """Forearm deviation from the upper-arm line at release (180° − elbow)."""
    if release_elbow_angle_deg is None:
        return None
    return 180.0 - release_elbow_angle_deg


def follow_through_hold(samples: Sequence[PoseSample], t_release: Optional[float]) -> Optional[float]:
    """Seconds the shooting arm stays up and extended after release."""
    follow = _follow(samples, t_release)
    if not follow:
        return None
    held_until = t_release
    for s in follow:
        up = (s.wrist is not None and s.shoulder is not None and s.wrist.y < s.shoulder.y)
        straight = s.elbow_angle is not None and s.elbow_angle > FOLLOW_THROUGH_ELBOW_DEG
        if not (up and straight):
            break
        held_until = s.t
    return float(held_until - t_release)


def elbow_compactness(samples: Sequence[PoseSample], t_release: Optional[float]) -> Optional[float]:
    """Sideways wobble of the elbow under the shoulder, relative to torso length."""
    gather = _gather(samples, t_release)
    offsets = [s.elbow.x - s.shoulder.x for s in gather
               if s.elbow is not None and s.shoulder is not None]
    torso = _mean_torso(gather)
    if len(offsets) < 2 or not torso:
        return None
    return float(np.std(offsets) / torso)


def alignment(samples: Sequence[PoseSample], t_release: Optional[float]) -> Optional[float]:
    """Mean horizontal wrist-over-elbow offset, relative to torso length."""
    gather = _gather(samples, t_release)
    offsets = [abs(s.wrist.x - s.elbow.x) for s in gather
               if s.wrist is not None and s.elbow is not None]
    torso = _mean_torso(gather)
    if not offsets or not torso:
        return None
    return float(np.mean(offsets) / torso)


def stability(samples: Sequence[PoseSample]) -> Optional[float]:
    """Hip-centre sway over the whole attempt, relative to torso length."""
    xs = [s.hip_center[0] for s in samples if s.hip_center is not None]
    torso = _mean_torso(samples)
    if len(xs) < 2 or not torso:
        return None
    return float(np.std(xs) / torso)


def derive_metrics(attempt: ShotAttempt) -> StrokeMetrics:
    """Compute the full :class:`StrokeMetrics` bundle for ``attempt``."""
    samples, t_rel = attempt.samples, attempt.t_release
    metrics = StrokeMetrics(
        knee_depth_deg=knee_depth(samples, t_rel),
        knee_extend_deg_per_sec=knee_extension_rate(samples, t_rel),
        release_angle_deg=release_angle(samples, t_rel),
        wrist_drive_deg=wrist_drive(attempt.release_elbow_angle_deg),
        follow_hold_sec=follow_through_hold(samples, t_rel),
        elbow_compact_pct=elbow_compactness(samples, t_rel),
        align_pct=alignment(samples, t_rel),
        stability_pct=stability(samples),
    )
    logger.debug("metrics for %s: %s", attempt.id[:8], metrics)
    return metrics
