"""
pose_source.py
──────────────────────────────────────────────────────────────────────────────
Pose estimation is an injected capability: anything with
``estimate(frame) -> Pose | None`` will do.  The MediaPipe adapter below is
the stock implementation; its 33-point BlazePose output is folded onto the
17-joint layout used everywhere else.

MediaPipe is loaded lazily so the rest of the package (and its tests) never
need it installed.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol, Sequence

import cv2
import numpy as np

from .keypoints import Joint, Landmark, Pose

try:
    import mediapipe as mp
    MP_AVAILABLE = True
except ImportError:
    MP_AVAILABLE = False

logger = logging.getLogger(__name__)


class PoseEstimator(Protocol):
    def estimate(self, frame: np.ndarray) -> Optional[Pose]:
        ...


# BlazePose index → Joint
_BLAZEPOSE_TO_JOINT: Dict[int, Joint] = {
    0 : Joint.NOSE,
    2 : Joint.LEFT_EYE,
    5 : Joint.RIGHT_EYE,
    7 : Joint.LEFT_EAR,
    8 : Joint.RIGHT_EAR,
    11: Joint.LEFT_SHOULDER,
    12: Joint.RIGHT_SHOULDER,
    13: Joint.LEFT_ELBOW,
    14: Joint.RIGHT_ELBOW,
    15: Joint.LEFT_WRIST,
    16: Joint.RIGHT_WRIST,
    23: Joint.LEFT_HIP,
    24: Joint.RIGHT_HIP,
    25: Joint.LEFT_KNEE,
    26: Joint.RIGHT_KNEE,
    27: Joint.LEFT_ANKLE,
    28: Joint.RIGHT_ANKLE,
}


def pose_from_blazepose(landmarks: Sequence, width: int, height: int) -> Pose:
    """
    Convert normalised BlazePose landmarks (``.x``, ``.y``, ``.visibility``)
    to a pixel-space :class:`Pose`.
    """
    joints = {}
    for idx, joint in _BLAZEPOSE_TO_JOINT.items():
        if idx >= len(landmarks):
            continue
        lm = landmarks[idx]
        joints[joint] = Landmark(
            x=float(lm.x) * width,
            y=float(lm.y) * height,
            confidence=float(getattr(lm, "visibility", 0.0)),
        )
    return Pose(joints)


class MediaPipePoseEstimator:
    """
    Single-person BlazePose via ``mediapipe.solutions.pose``.

    Frames are BGR (OpenCV) unless ``channel_order="rgb"``.
    """

    def __init__(
        self,
        model_complexity: int = 0,     # 0=Lite, 1=Full, 2=Heavy
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
        channel_order: str = "bgr",
    ):
        self._complexity   = model_complexity
        self._det_conf     = min_detection_confidence
        self._trk_conf     = min_tracking_confidence
        self.channel_order = channel_order

        self._pose_instance = None         # lazy init

    def _ensure_pose(self):
        if self._pose_instance is None:
            if not MP_AVAILABLE:
                raise RuntimeError("mediapipe not installed.")
            self._pose_instance = mp.solutions.pose.Pose(
                static_image_mode=False,
                model_complexity=self._complexity,
                smooth_landmarks=True,
                enable_segmentation=False,
                min_detection_confidence=self._det_conf,
                min_tracking_confidence=self._trk_conf,
            )
            logger.info("mediapipe pose ready (complexity=%d)", self._complexity)

    def estimate(self, frame: np.ndarray) -> Optional[Pose]:
        self._ensure_pose()
        h, w = frame.shape[:2]
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB) if self.channel_order == "bgr" else frame
        result = self._pose_instance.process(rgb)
        if result.pose_landmarks is None:
            return None
        return pose_from_blazepose(result.pose_landmarks.landmark, w, h)

    def close(self) -> None:
        if self._pose_instance is not None:
            self._pose_instance.close()
            self._pose_instance = None
