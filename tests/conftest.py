"""Synthetic single-shooter poses (frame pixels, y grows downward)."""

from __future__ import annotations

from typing import Iterable

import numpy as np
import pytest

from shotform.keypoints import Joint, Landmark, Pose

BALL_RGB = (200, 120, 40)

# right-arm layouts: (elbow, wrist); right shoulder sits at (110, 100)
_RIGHT_ARM = {
    "down"   : ((112, 150), (114, 195)),   # hanging, wrist below shoulder
    "gather" : ((125, 140), (112, 115)),   # ball set, elbow bent, wrist below shoulder
    "release": ((112, 50),  (114, 0)),     # arm straight overhead
}


def make_pose(
    knee_bend: float = 0.0,
    arm: str = "down",
    conf: float = 0.9,
    hidden: Iterable[Joint] = (),
    hip_shift: float = 0.0,
) -> Pose:
    """
    Upright shooter; ``knee_bend`` pushes both knees forward (22 px ≈ 155°,
    30 px ≈ 147°), ``arm`` picks the right-arm layout.
    """
    hidden = set(hidden)
    lm = {}

    def put(j: Joint, x: float, y: float) -> None:
        lm[j] = Landmark(float(x), float(y), 0.0 if j in hidden else conf)

    put(Joint.NOSE, 100, 60)
    put(Joint.LEFT_EYE, 96, 56)
    put(Joint.RIGHT_EYE, 104, 56)
    put(Joint.LEFT_EAR, 92, 58)
    put(Joint.RIGHT_EAR, 108, 58)
    put(Joint.LEFT_SHOULDER, 90, 100)
    put(Joint.RIGHT_SHOULDER, 110, 100)
    put(Joint.LEFT_ELBOW, 88, 150)
    put(Joint.LEFT_WRIST, 86, 195)
    r_elbow, r_wrist = _RIGHT_ARM[arm]
    put(Joint.RIGHT_ELBOW, *r_elbow)
    put(Joint.RIGHT_WRIST, *r_wrist)
    put(Joint.LEFT_HIP, 92 + hip_shift, 200)
    put(Joint.RIGHT_HIP, 108 + hip_shift, 200)
    put(Joint.LEFT_KNEE, 92 + knee_bend, 300)
    put(Joint.RIGHT_KNEE, 108 + knee_bend, 300)
    put(Joint.LEFT_ANKLE, 92, 400)
    put(Joint.RIGHT_ANKLE, 108, 400)
    return Pose(lm)


def paint_ball(frame: np.ndarray, cx: int, cy: int, size: int = 10) -> np.ndarray:
    """Solid ``size``×``size`` ball-coloured block whose top-left is (cx-5, cy-5)."""
    half = size // 2
    frame[cy - half:cy - half + size, cx - half:cx - half + size] = BALL_RGB
    return frame


@pytest.fixture
def pose_factory():
    return make_pose


@pytest.fixture
def standing() -> Pose:
    return make_pose()


@pytest.fixture
def crouch() -> Pose:
    return make_pose(knee_bend=22, arm="gather")


@pytest.fixture
def release_pose() -> Pose:
    return make_pose(arm="release")


@pytest.fixture
def blank_frame() -> np.ndarray:
    return np.zeros((240, 320, 3), dtype=np.uint8)
