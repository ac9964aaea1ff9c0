"""
Basketball shot analytics
  - per-frame pose + ball → discrete shot attempts (start, release, apex, end, made/missed)
  - biomechanical form score per attempt
"""
from .ball_localizer import BallLocalizer, BallObservation
from .keypoints import Joint, Landmark, Pose
from .shot_analyzer import ShotAnalyzer, ShotRecord
from .shot_detector import HoopRegion, ShotAttempt, ShotDetector
from .stroke_scorer import ScoreDetail, StrokeMetrics, score_stroke

__all__ = [
    "BallLocalizer", "BallObservation",
    "Joint", "Landmark", "Pose",
    "ShotAnalyzer", "ShotRecord",
    "HoopRegion", "ShotAttempt", "ShotDetector",
    "ScoreDetail", "StrokeMetrics", "score_stroke",
]
