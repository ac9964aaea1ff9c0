from __future__ import annotations

from types import SimpleNamespace

import numpy as np
import pytest

from shotform import pose_source
from shotform.keypoints import Joint
from shotform.pose_source import MediaPipePoseEstimator, pose_from_blazepose


def _blazepose(n: int = 33):
    return [SimpleNamespace(x=i / 100.0, y=0.5, visibility=0.9 if i != 16 else 0.1)
            for i in range(n)]


def test_blazepose_folds_to_seventeen_joints() -> None:
    pose = pose_from_blazepose(_blazepose(), width=200, height=100)
    assert len(pose) == 17
    ls = pose[Joint.LEFT_SHOULDER]
    assert ls.x == pytest.approx(22.0)
    assert ls.y == pytest.approx(50.0)
    assert pose[Joint.RIGHT_ANKLE].x == pytest.approx(56.0)
    assert pose.usable(Joint.RIGHT_WRIST) is None


def test_short_landmark_list_leaves_joints_missing() -> None:
    pose = pose_from_blazepose(_blazepose(20), width=100, height=100)
    assert pose[Joint.LEFT_HIP] is None
    assert pose[Joint.RIGHT_WRIST] is not None


def test_estimator_needs_mediapipe(monkeypatch) -> None:
    monkeypatch.setattr(pose_source, "MP_AVAILABLE", False)
    est = MediaPipePoseEstimator()
    with pytest.raises(RuntimeError, match="mediapipe"):
        est.estimate(np.zeros((10, 10, 3), dtype=np.uint8))
    est.close()


def test_estimator_uses_injected_model(monkeypatch) -> None:
    seen = {}

    class FakeModel:
        def process(self, rgb):
            seen["shape"] = rgb.shape
            return SimpleNamespace(pose_landmarks=SimpleNamespace(landmark=_blazepose()))

        def close(self):
            seen["closed"] = True

    est = MediaPipePoseEstimator(channel_order="rgb")
    monkeypatch.setattr(est, "_pose_instance", FakeModel())
    pose = est.estimate(np.zeros((100, 200, 3), dtype=np.uint8))
    assert seen["shape"] == (100, 200, 3)
    assert pose[Joint.NOSE].x == pytest.approx(0.0)
    est.close()
    assert seen["closed"]


def test_no_person_gives_none() -> None:
    class Empty:
        def process(self, rgb):
            return SimpleNamespace(pose_landmarks=None)

    est = MediaPipePoseEstimator()
    est._pose_instance = Empty()
    assert est.estimate(np.zeros((8, 8, 3), dtype=np.uint8)) is None
