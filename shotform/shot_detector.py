"""
shot_detector.py
──────────────────────────────────────────────────────────────────────────────
Single-attempt shot state machine.

    idle ──start──▶ tracking ──release──▶ released ──made / miss──▶ idle
                        │                     │
                        └──── stale timeout ──┴──▶ idle  (made = None)

Start   : knee bent below 165° and a wrist still below its shoulder (dip).
Release : shooting elbow extended past 165° with a wrist above its shoulder.
Made    : ball inside the hoop box, in the top 30 % of it.
Miss    : > 2 s after release, ball more than 15 px under the hoop box.

Each call to :meth:`ShotDetector.update` evaluates at most one transition.
The detector owns the in-flight attempt, the finished history and a bounded
ball trace; it is not thread-safe, confine an instance to one worker.
"""

from __future__ import annotations

import collections
import dataclasses
import logging
import uuid
from dataclasses import dataclass, field
from typing import Deque, List, Optional, Sequence, Tuple, Union

from .ball_localizer import BallObservation
from .config import KNEE_MISSING_DEFAULT_DEG, DetectorConfig
from .errors import TimestampOrderError
from .keypoints import ARM, LEG, Joint, Landmark, Pose
from .utils.geometry import angle, distance, midpoint

logger = logging.getLogger(__name__)

IDLE     = "idle"
TRACKING = "tracking"
RELEASED = "released"


# ──────────────────────────────────────────────────────────────────────────────
# Value types
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class HoopRegion:
    """Axis-aligned hoop box in frame pixels (y grows downward)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.right and self.y <= py <= self.bottom


@dataclass(frozen=True)
class PoseSample:
    """Shooting-side snapshot taken on every in-flight frame."""
    t: float
    knee_angle: Optional[float]
    elbow_angle: Optional[float]
    shoulder: Optional[Landmark]
    elbow: Optional[Landmark]
    wrist: Optional[Landmark]
    hip_center: Optional[Tuple[float, float]]
    torso_len: Optional[float]


@dataclass
class ShotAttempt:
    """
    One shot cycle.  Mutated in place by the detector while in flight and
    sealed once ``t_end`` is set; a sealed attempt rejects attribute writes.
    """
    id: str
    t_start: float
    t_release: Optional[float] = None
    t_apex: Optional[float] = None
    t_end: Optional[float] = None
    made: Optional[bool] = None
    release_elbow_angle_deg: Optional[float] = None
    knee_dip_angle_deg: Optional[float] = None
    samples: List[PoseSample] = field(default_factory=list, repr=False, compare=False)
    _sealed: bool = field(default=False, init=False, repr=False, compare=False)

    def __setattr__(self, name, value):
        if getattr(self, "_sealed", False):
            raise dataclasses.FrozenInstanceError(f"attempt {self.id} is finalized")
        super().__setattr__(name, value)

    def seal(self) -> None:
        super().__setattr__("_sealed", True)

    @property
    def finalized(self) -> bool:
        return self.t_end is not None

    @property
    def state(self) -> str:
        if self.finalized:
            return IDLE
        return TRACKING if self.t_release is None else RELEASED


PoseInput = Union[Pose, Sequence, None]


# ──────────────────────────────────────────────────────────────────────────────
# Pose predicates
# ──────────────────────────────────────────────────────────────────────────────

def measured_knee_angle(pose: Pose) -> Optional[float]:
    """Smaller knee angle over legs with hip, knee and ankle all usable."""
    angles = [angle(pose.usable(hip_j), pose.usable(knee_j), pose.usable(ankle_j))
              for hip_j, knee_j, ankle_j in LEG.values()]
    angles = [a for a in angles if a is not None]
    return min(angles) if angles else None


def knee_angle(pose: Pose) -> float:
    """Smaller of the two knee angles; an unseen leg counts as straight."""
    measured = measured_knee_angle(pose)
    return KNEE_MISSING_DEFAULT_DEG if measured is None else measured


def shooting_arm(pose: Pose) -> Tuple[Optional[str], Optional[float]]:
    """(side, elbow angle), right arm first, left as fallback."""
    for side in ("right", "left"):
        s, e, w = (pose.usable(j) for j in ARM[side])
        a = angle(s, e, w)
        if a is not None:
            return side, a
    return None, None


def _wrist_vs_shoulder(pose: Pose, above: bool) -> bool:
    for shoulder_j, _, wrist_j in ARM.values():
        s, w = pose.usable(shoulder_j), pose.usable(wrist_j)
        if s is None or w is None:
            continue
        if (w.y < s.y) if above else (w.y > s.y):
            return True
    return False


def wrist_above_shoulder(pose: Pose) -> bool:
    return _wrist_vs_shoulder(pose, above=True)


def wrist_below_shoulder(pose: Pose) -> bool:
    return _wrist_vs_shoulder(pose, above=False)


def _sample(pose: Pose, t: float) -> PoseSample:
    side, elbow_ang = shooting_arm(pose)
    shoulder = elbow = wrist = None
    if side is not None:
        shoulder, elbow, wrist = (pose.usable(j) for j in ARM[side])

    l_hip, r_hip = pose.usable(Joint.LEFT_HIP), pose.usable(Joint.RIGHT_HIP)
    hip_c = midpoint(l_hip, r_hip)
    sh_c  = midpoint(pose.usable(Joint.LEFT_SHOULDER), pose.usable(Joint.RIGHT_SHOULDER))
    torso = distance(sh_c, hip_c)

    return PoseSample(
        t=t,
        knee_angle=measured_knee_angle(pose),
        elbow_angle=elbow_ang,
        shoulder=shoulder,
        elbow=elbow,
        wrist=wrist,
        hip_center=hip_c,
        torso_len=torso if torso else None,
    )


# ──────────────────────────────────────────────────────────────────────────────
# ShotDetector
# ──────────────────────────────────────────────────────────────────────────────

class ShotDetector:
    """
    Frame-by-frame shot attempt detector.

    Usage
    ─────
    det = ShotDetector()
    for t, keypoints, ball in stream:
        done = det.update(keypoints, ball, hoop, t)
        if done is not None:
            ...   # finalized ShotAttempt
    """

    def __init__(self, config: Optional[DetectorConfig] = None):
        self.config = config or DetectorConfig()

        self._current: Optional[ShotAttempt] = None
        self._history: List[ShotAttempt] = []
        self.ball_trace: Deque[Tuple[float, float]] = collections.deque(
            maxlen=self.config.trace_length
        )
        self._last_t: Optional[float] = None

        # highest (smallest y) ball point since release
        self._peak: Optional[Tuple[float, float]] = None   # (y, t)

    # ──────────────────────────────────────────────────────────────────────────
    # Read access
    # ──────────────────────────────────────────────────────────────────────────
    @property
    def in_flight(self) -> Optional[ShotAttempt]:
        return self._current

    @property
    def history(self) -> Tuple[ShotAttempt, ...]:
        return tuple(self._history)

    @property
    def state(self) -> str:
        return IDLE if self._current is None else self._current.state

    # ──────────────────────────────────────────────────────────────────────────
    def update(
        self,
        pose: PoseInput,
        ball: Optional[BallObservation] = None,
        hoop: Optional[HoopRegion] = None,
        t: float = 0.0,
    ) -> Optional[ShotAttempt]:
        """
        Advance one frame.  Returns the attempt finalized on this frame, if any.

        ``t`` is in seconds and must increase strictly from call to call.
        """
        if self._last_t is not None and t <= self._last_t:
            raise TimestampOrderError(t, self._last_t)

        if pose is None:
            pose = Pose({})
        elif not isinstance(pose, Pose):
            pose = Pose.from_keypoints(pose)
        if ball is None:
            ball = BallObservation.missing()

        self._last_t = t
        if ball.valid:
            self.ball_trace.append((ball.x, ball.y))

        shot = self._current
        if shot is None:
            self._maybe_start(pose, t)
            return None

        shot.samples.append(_sample(pose, t))
        if shot.t_release is None:
            return self._step_tracking(shot, pose, t)
        return self._step_released(shot, ball, hoop, t)

    def reset(self) -> None:
        """Drop the in-flight attempt, history, trace and clock."""
        self._current = None
        self._history.clear()
        self.ball_trace.clear()
        self._last_t = None
        self._peak   = None

    # ──────────────────────────────────────────────────────────────────────────
    # Transitions
    # ──────────────────────────────────────────────────────────────────────────
    def _maybe_start(self, pose: Pose, t: float) -> None:
        knee = knee_angle(pose)
        if knee >= self.config.knee_bend_start_deg or not wrist_below_shoulder(pose):
            return
        shot = ShotAttempt(id=uuid.uuid4().hex, t_start=t, knee_dip_angle_deg=knee)
        shot.samples.append(_sample(pose, t))
        self._current = shot
        self._peak    = None
        logger.info("shot %s started at t=%.3f (knee %.1f°)", shot.id[:8], t, knee)

    def _step_tracking(self, shot: ShotAttempt, pose: Pose, t: float) -> Optional[ShotAttempt]:
        _, elbow = shooting_arm(pose)
        if (elbow is not None and elbow > self.config.elbow_release_deg
                and wrist_above_shoulder(pose)):
            shot.t_release = t
            shot.release_elbow_angle_deg = elbow
            logger.info("shot %s released at t=%.3f (elbow %.1f°)", shot.id[:8], t, elbow)
            return None

        limit = self.config.start_timeout_s
        if limit is not None and t - shot.t_start > limit:
            logger.warning("shot %s never released after %.1fs; closing", shot.id[:8], limit)
            return self._finalize(shot, t, made=None)
        return None

    def _step_released(
        self,
        shot: ShotAttempt,
        ball: BallObservation,
        hoop: Optional[HoopRegion],
        t: float,
    ) -> Optional[ShotAttempt]:
        cfg = self.config
        if ball.valid:
            self._track_apex(shot, ball, t)

        if hoop is not None and ball.valid:
            # made is checked before miss
            if (hoop.contains(ball.x, ball.y)
                    and ball.y < hoop.y + cfg.made_top_fraction * hoop.height):
                return self._finalize(shot, t, made=True)
            if (t - shot.t_release > cfg.miss_timeout_s
                    and ball.y > hoop.bottom + cfg.miss_margin_px):
                return self._finalize(shot, t, made=False)

        limit = cfg.release_timeout_s
        if limit is not None and t - shot.t_release > limit:
            logger.warning("shot %s unresolved %.1fs after release; closing", shot.id[:8], limit)
            return self._finalize(shot, t, made=None)
        return None

    def _track_apex(self, shot: ShotAttempt, ball: BallObservation, t: float) -> None:
        if shot.t_apex is not None:
            return
        if self._peak is None or ball.y < self._peak[0]:
            self._peak = (ball.y, t)
        elif ball.y - self._peak[0] > self.config.apex_drop_px:
            shot.t_apex = self._peak[1]
            logger.debug("shot %s apex at t=%.3f", shot.id[:8], shot.t_apex)

    def _finalize(self, shot: ShotAttempt, t: float, made: Optional[bool]) -> ShotAttempt:
        if shot.t_apex is None and self._peak is not None:
            shot.t_apex = self._peak[1]
        shot.made  = made
        shot.t_end = t
        shot.seal()

        self._history.append(shot)
        self._current = None
        self._peak    = None
        outcome = {True: "made", False: "missed", None: "unresolved"}[made]
        logger.info("shot %s %s at t=%.3f", shot.id[:8], outcome, t)
        return shot
