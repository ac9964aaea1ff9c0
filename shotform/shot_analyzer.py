"""
shot_analyzer.py
──────────────────────────────────────────────────────────────────────────────
Single entry point tying the pieces together, one frame at a time:

    frame ─▶ pose estimator ─▶ ball localizer ─▶ shot detector
                                                    │ (attempt finished)
                                                    ▼
                                  metrics ─▶ stroke scorer ─▶ ShotRecord

Public API
──────────
    analyzer = ShotAnalyzer(pose_estimator=MediaPipePoseEstimator(), hoop=hoop)
    annotated_frame, analytics = analyzer.process(frame, t)

    # Library form, pose and ball already in hand:
    record = analyzer.process_pose(pose, ball, t)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np

from .annotator import Annotator
from .ball_localizer import BallLocalizer, BallObservation
from .config import BallColorRule, DetectorConfig
from .export import attempt_to_dict
from .keypoints import Pose
from .metrics import derive_metrics
from .pose_source import PoseEstimator
from .shot_detector import HoopRegion, PoseInput, ShotAttempt, ShotDetector
from .stroke_scorer import ScoreDetail, StrokeMetrics, score_stroke

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShotRecord:
    """A finished attempt with its derived metrics and form score."""
    attempt: ShotAttempt
    metrics: StrokeMetrics
    score: ScoreDetail

    def to_dict(self) -> Dict[str, Any]:
        out = attempt_to_dict(self.attempt)
        out["metrics"] = self.metrics.to_dict()
        out["score"]   = self.score.to_dict()
        return out


class ShotAnalyzer:
    """
    Shot analytics session.

    Parameters
    ──────────
    pose_estimator     : anything with ``estimate(frame) -> Pose | None``;
                         optional when poses are always passed in
    hoop               : hoop box; without it shots only close by timeout
    detector_config    : thresholds for the state machine
    ball_rule          : colour rule for the ball localizer
    channel_order      : "rgb" or "bgr" layout of frames given to ``process``
    baseline_overrides : scorer baseline fields to replace
    """

    def __init__(
        self,
        pose_estimator: Optional[PoseEstimator] = None,
        hoop: Optional[HoopRegion] = None,
        detector_config: Optional[DetectorConfig] = None,
        ball_rule: Optional[BallColorRule] = None,
        channel_order: str = "rgb",
        baseline_overrides: Optional[Mapping[str, Any]] = None,
        annotator: Optional[Annotator] = None,
    ):
        self.pose_estimator     = pose_estimator
        self.hoop               = hoop
        self.baseline_overrides = dict(baseline_overrides or {})

        self._detector  = ShotDetector(detector_config)
        self._localizer = BallLocalizer(ball_rule, channel_order=channel_order)
        self._annot     = annotator or Annotator()

        self._records: List[ShotRecord] = []

    # ──────────────────────────────────────────────────────────────────────────
    @property
    def detector(self) -> ShotDetector:
        return self._detector

    @property
    def records(self) -> Tuple[ShotRecord, ...]:
        return tuple(self._records)

    def set_hoop(self, hoop: Optional[HoopRegion]) -> None:
        self.hoop = hoop

    # ──────────────────────────────────────────────────────────────────────────
    def process(
        self,
        frame: np.ndarray,
        t: float,
        pose: PoseInput = None,
        annotate: bool = True,
    ) -> Tuple[np.ndarray, dict]:
        """
        Main per-frame entry point.

        Returns
        ───────
        annotated_frame : np.ndarray  – input frame when ``annotate`` is False
        analytics       : dict        – see ``_build_analytics``
        """
        if pose is None and self.pose_estimator is not None:
            pose = self.pose_estimator.estimate(frame)
        if pose is not None and not isinstance(pose, Pose):
            pose = Pose.from_keypoints(pose)

        ball   = self._localizer.locate(frame)
        record = self.process_pose(pose, ball, t)

        out = frame
        if annotate:
            stats = self.session_stats()
            last  = self._records[-1] if self._records else None
            out = self._annot.annotate(
                frame,
                pose       = pose,
                ball       = ball,
                ball_trail = list(self._detector.ball_trace),
                hoop       = self.hoop,
                state      = self._detector.state,
                makes      = stats["makes"],
                attempts   = stats["attempts"],
                last_made  = last.attempt.made if last else None,
                last_score = last.score.overall if last else None,
            )
        return out, self._build_analytics(ball, record, t)

    def process_pose(
        self,
        pose: PoseInput,
        ball: Optional[BallObservation],
        t: float,
    ) -> Optional[ShotRecord]:
        """Advance the detector; score and return the attempt if one finished."""
        done = self._detector.update(pose, ball, self.hoop, t)
        if done is None:
            return None
        metrics = derive_metrics(done)
        score   = score_stroke(metrics, self.baseline_overrides)
        record  = ShotRecord(done, metrics, score)
        self._records.append(record)
        logger.info("shot %s scored %d", done.id[:8], score.overall)
        return record

    def session_stats(self) -> dict:
        makes      = sum(1 for r in self._records if r.attempt.made is True)
        misses     = sum(1 for r in self._records if r.attempt.made is False)
        unresolved = len(self._records) - makes - misses
        resolved   = makes + misses
        scores     = [r.score.overall for r in self._records]
        return {
            "attempts"  : len(self._records),
            "makes"     : makes,
            "misses"    : misses,
            "unresolved": unresolved,
            "fg_pct"    : round(100.0 * makes / resolved, 1) if resolved else None,
            "mean_score": round(sum(scores) / len(scores), 1) if scores else None,
        }

    def reset(self) -> None:
        self._detector.reset()
        self._records.clear()

    # ──────────────────────────────────────────────────────────────────────────
    def _build_analytics(
        self,
        ball: BallObservation,
        record: Optional[ShotRecord],
        t: float,
    ) -> dict:
        current = self._detector.in_flight
        return {
            "t"          : t,
            "state"      : self._detector.state,
            "ball_pos"   : ball.pos if ball.valid else None,
            "attempt_id" : current.id if current else None,
            "completed"  : record.to_dict() if record else None,
            "stats"      : self.session_stats(),
        }
