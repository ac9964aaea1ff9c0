"""
keypoints.py
──────────────────────────────────────────────────────────────────────────────
Fixed joint layout and per-frame pose container.

The pose estimator hands us an ordered list of 17 keypoints in the COCO /
MoveNet order.  That list is validated once, here, and everything downstream
addresses joints by name through :class:`Joint`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterator, Mapping, Optional, Sequence, Tuple

from .config import MIN_LANDMARK_CONFIDENCE, NUM_JOINTS
from .errors import KeypointFormatError


class Joint(IntEnum):
    NOSE           = 0
    LEFT_EYE       = 1
    RIGHT_EYE      = 2
    LEFT_EAR       = 3
    RIGHT_EAR      = 4
    LEFT_SHOULDER  = 5
    RIGHT_SHOULDER = 6
    LEFT_ELBOW     = 7
    RIGHT_ELBOW    = 8
    LEFT_WRIST     = 9
    RIGHT_WRIST    = 10
    LEFT_HIP       = 11
    RIGHT_HIP      = 12
    LEFT_KNEE      = 13
    RIGHT_KNEE     = 14
    LEFT_ANKLE     = 15
    RIGHT_ANKLE    = 16


# (shoulder, elbow, wrist) / (hip, knee, ankle) per side
ARM = {
    "left" : (Joint.LEFT_SHOULDER,  Joint.LEFT_ELBOW,  Joint.LEFT_WRIST),
    "right": (Joint.RIGHT_SHOULDER, Joint.RIGHT_ELBOW, Joint.RIGHT_WRIST),
}
LEG = {
    "left" : (Joint.LEFT_HIP,  Joint.LEFT_KNEE,  Joint.LEFT_ANKLE),
    "right": (Joint.RIGHT_HIP, Joint.RIGHT_KNEE, Joint.RIGHT_ANKLE),
}

# Limb pairs drawn by the annotator
SKELETON_EDGES: Tuple[Tuple[Joint, Joint], ...] = (
    (Joint.LEFT_SHOULDER, Joint.RIGHT_SHOULDER),
    (Joint.LEFT_HIP, Joint.RIGHT_HIP),
    (Joint.LEFT_SHOULDER, Joint.LEFT_ELBOW),
    (Joint.LEFT_ELBOW, Joint.LEFT_WRIST),
    (Joint.RIGHT_SHOULDER, Joint.RIGHT_ELBOW),
    (Joint.RIGHT_ELBOW, Joint.RIGHT_WRIST),
    (Joint.LEFT_HIP, Joint.LEFT_KNEE),
    (Joint.LEFT_KNEE, Joint.LEFT_ANKLE),
    (Joint.RIGHT_HIP, Joint.RIGHT_KNEE),
    (Joint.RIGHT_KNEE, Joint.RIGHT_ANKLE),
    (Joint.LEFT_SHOULDER, Joint.LEFT_HIP),
    (Joint.RIGHT_SHOULDER, Joint.RIGHT_HIP),
)


@dataclass(frozen=True)
class Landmark:
    x: float
    y: float
    confidence: float = 1.0

    @property
    def usable(self) -> bool:
        return self.confidence > MIN_LANDMARK_CONFIDENCE


def _coerce_landmark(raw, index: int) -> Landmark:
    if isinstance(raw, Landmark):
        return raw
    try:
        if isinstance(raw, Mapping):
            x, y = raw["x"], raw["y"]
            conf = raw.get("confidence", raw.get("score", 1.0))
        elif hasattr(raw, "x") and hasattr(raw, "y"):
            x, y = raw.x, raw.y
            conf = getattr(raw, "confidence", getattr(raw, "score", 1.0))
        else:
            x, y = raw[0], raw[1]
            conf = raw[2] if len(raw) > 2 else 1.0
        x, y = float(x), float(y)
        conf = 0.0 if conf is None else float(conf)
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise KeypointFormatError(f"keypoint {index} is malformed: {raw!r}") from exc

    # A NaN coordinate is an undetected joint, not a format error
    if not (math.isfinite(x) and math.isfinite(y)):
        conf = 0.0
    return Landmark(x, y, conf)


class Pose:
    """
    One frame's landmarks, addressed by :class:`Joint`.

    Build with :meth:`from_keypoints` (ordered sequence) or
    :meth:`from_mapping` (joint → landmark, missing joints allowed).
    """

    __slots__ = ("_landmarks",)

    def __init__(self, landmarks: Dict[Joint, Landmark]):
        self._landmarks = dict(landmarks)

    @classmethod
    def from_keypoints(cls, keypoints: Sequence) -> "Pose":
        if keypoints is None or isinstance(keypoints, (str, bytes)):
            raise KeypointFormatError("keypoints must be a sequence")
        if len(keypoints) < NUM_JOINTS:
            raise KeypointFormatError(
                f"expected at least {NUM_JOINTS} keypoints, got {len(keypoints)}"
            )
        return cls({j: _coerce_landmark(keypoints[j], int(j)) for j in Joint})

    @classmethod
    def from_mapping(cls, landmarks: Mapping) -> "Pose":
        out: Dict[Joint, Landmark] = {}
        for key, raw in landmarks.items():
            try:
                joint = Joint[key.upper()] if isinstance(key, str) else Joint(key)
            except (KeyError, ValueError) as exc:
                raise KeypointFormatError(f"unknown joint {key!r}") from exc
            out[joint] = _coerce_landmark(raw, int(joint))
        return cls(out)

    def __getitem__(self, joint: Joint) -> Optional[Landmark]:
        return self._landmarks.get(joint)

    def __iter__(self) -> Iterator[Tuple[Joint, Landmark]]:
        return iter(self._landmarks.items())

    def __len__(self) -> int:
        return len(self._landmarks)

    def usable(self, joint: Joint) -> Optional[Landmark]:
        """The landmark if present with confidence above threshold, else None."""
        lm = self._landmarks.get(joint)
        if lm is None or not lm.usable:
            return None
        return lm
