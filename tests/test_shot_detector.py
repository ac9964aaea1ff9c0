from __future__ import annotations

import dataclasses

import pytest

from shotform.ball_localizer import BallObservation
from shotform.config import DetectorConfig
from shotform.errors import TimestampOrderError
from shotform.keypoints import Joint
from shotform.shot_detector import (
    IDLE,
    RELEASED,
    TRACKING,
    HoopRegion,
    ShotDetector,
    knee_angle,
    measured_knee_angle,
    shooting_arm,
)

HOOP = HoopRegion(x=300, y=50, width=60, height=40)   # made zone: y < 62


def ball(x: float, y: float) -> BallObservation:
    return BallObservation(x, y, 10.0, True)


def _released(det: ShotDetector, crouch, release_pose, hoop=HOOP):
    """Start at t=0.1, release at t=1.0."""
    assert det.update(crouch, None, hoop, 0.1) is None
    assert det.update(release_pose, None, hoop, 1.0) is None
    assert det.state == RELEASED
    return det.in_flight


# ──────────────────────────────────────────────────────────────────────────────
# Pose predicates
# ──────────────────────────────────────────────────────────────────────────────

def test_knee_angle_defaults_to_straight_without_legs(pose_factory) -> None:
    legs = [Joint.LEFT_KNEE, Joint.RIGHT_KNEE]
    assert knee_angle(pose_factory(knee_bend=22, hidden=legs)) == 180.0
    assert knee_angle(pose_factory(knee_bend=22)) < 165.0


def test_measured_knee_needs_a_full_leg(pose_factory) -> None:
    hips = [Joint.LEFT_HIP, Joint.RIGHT_HIP]
    assert measured_knee_angle(pose_factory(knee_bend=22, hidden=hips)) is None
    assert measured_knee_angle(pose_factory(knee_bend=22)) == pytest.approx(
        knee_angle(pose_factory(knee_bend=22)))


def test_sample_without_full_leg_has_no_knee(crouch, pose_factory) -> None:
    det = ShotDetector()
    det.update(crouch, None, None, 0.0)
    knees_only = pose_factory(knee_bend=22, arm="gather",
                              hidden=[Joint.LEFT_HIP, Joint.RIGHT_HIP])
    det.update(knees_only, None, None, 0.1)
    assert det.in_flight.samples[0].knee_angle is not None
    assert det.in_flight.samples[-1].knee_angle is None


def test_shooting_arm_prefers_right_then_left(pose_factory) -> None:
    side, _ = shooting_arm(pose_factory())
    assert side == "right"
    side, _ = shooting_arm(pose_factory(hidden=[Joint.RIGHT_ELBOW]))
    assert side == "left"
    side, elbow = shooting_arm(pose_factory(hidden=[Joint.RIGHT_ELBOW, Joint.LEFT_ELBOW]))
    assert side is None and elbow is None


# ──────────────────────────────────────────────────────────────────────────────
# Start
# ──────────────────────────────────────────────────────────────────────────────

def test_standing_does_not_start(standing) -> None:
    det = ShotDetector()
    det.update(standing, None, HOOP, 0.0)
    assert det.state == IDLE
    assert det.in_flight is None


def test_dip_with_wrist_low_starts_one_attempt(standing, crouch) -> None:
    det = ShotDetector()
    det.update(standing, None, HOOP, 0.0)
    det.update(crouch, None, HOOP, 0.1)

    shot = det.in_flight
    assert shot is not None
    assert det.state == TRACKING
    assert shot.t_start == 0.1
    assert shot.knee_dip_angle_deg == pytest.approx(knee_angle(crouch))

    for i in range(2, 20):
        det.update(crouch, None, HOOP, 0.1 * i)
        assert det.in_flight is shot
    assert det.history == ()


def test_long_crouch_keeps_one_attempt_by_default(crouch) -> None:
    det = ShotDetector()
    det.update(crouch, None, None, 0.0)
    shot = det.in_flight
    for i in range(1, 121):
        assert det.update(crouch, None, None, 0.1 * i) is None
    assert det.in_flight is shot
    assert shot.t_start == 0.0
    assert det.history == ()


def test_dip_with_wrists_high_does_not_start(pose_factory) -> None:
    det = ShotDetector()
    det.update(pose_factory(knee_bend=22, arm="release",
                            hidden=[Joint.LEFT_WRIST]), None, HOOP, 0.0)
    assert det.state == IDLE


def test_single_visible_leg_is_enough(pose_factory) -> None:
    det = ShotDetector()
    left_leg = [Joint.LEFT_HIP, Joint.LEFT_KNEE, Joint.LEFT_ANKLE]
    det.update(pose_factory(knee_bend=22, arm="gather", hidden=left_leg), None, None, 0.0)
    assert det.state == TRACKING


def test_low_confidence_wrists_block_start(pose_factory) -> None:
    det = ShotDetector()
    det.update(pose_factory(knee_bend=22, arm="gather",
                            hidden=[Joint.LEFT_WRIST, Joint.RIGHT_WRIST]), None, None, 0.0)
    assert det.state == IDLE


def test_raw_keypoint_rows_are_accepted(crouch) -> None:
    rows = [(crouch[j].x, crouch[j].y, crouch[j].confidence) for j in Joint]
    det = ShotDetector()
    det.update(rows, None, None, 0.0)
    assert det.state == TRACKING


def test_missing_pose_is_idle() -> None:
    det = ShotDetector()
    assert det.update(None, None, HOOP, 0.0) is None
    assert det.state == IDLE


# ──────────────────────────────────────────────────────────────────────────────
# Release
# ──────────────────────────────────────────────────────────────────────────────

def test_release_records_time_and_elbow(crouch, release_pose) -> None:
    det = ShotDetector()
    shot = _released(det, crouch, release_pose)
    assert shot.t_release == 1.0
    assert shot.release_elbow_angle_deg > 165.0


def test_release_is_one_shot(crouch, release_pose) -> None:
    det = ShotDetector()
    shot = _released(det, crouch, release_pose)
    elbow = shot.release_elbow_angle_deg
    det.update(release_pose, None, HOOP, 1.1)
    det.update(release_pose, None, HOOP, 1.2)
    assert shot.t_release == 1.0
    assert shot.release_elbow_angle_deg == elbow


def test_straight_arm_below_shoulder_is_not_release(crouch, standing) -> None:
    det = ShotDetector()
    det.update(crouch, None, None, 0.0)
    det.update(standing, None, None, 0.1)   # right arm straight but hanging
    assert det.state == TRACKING


def test_release_needs_start_first(release_pose) -> None:
    det = ShotDetector()
    det.update(release_pose, None, HOOP, 0.0)
    assert det.state == IDLE


# ──────────────────────────────────────────────────────────────────────────────
# Resolution
# ──────────────────────────────────────────────────────────────────────────────

def test_ball_in_top_of_hoop_is_made_same_frame(crouch, release_pose) -> None:
    det = ShotDetector()
    shot = _released(det, crouch, release_pose)

    done = det.update(release_pose, ball(330, 55), HOOP, 1.4)
    assert done is shot
    assert done.made is True
    assert done.t_end == 1.4
    assert det.history == (shot,)
    assert det.in_flight is None
    assert det.state == IDLE


def test_ball_in_lower_hoop_is_not_made(crouch, release_pose) -> None:
    det = ShotDetector()
    _released(det, crouch, release_pose)
    assert det.update(release_pose, ball(330, 80), HOOP, 1.4) is None
    assert det.state == RELEASED


def test_ball_beside_hoop_is_not_made(crouch, release_pose) -> None:
    det = ShotDetector()
    _released(det, crouch, release_pose)
    assert det.update(release_pose, ball(280, 55), HOOP, 1.4) is None


def test_invalid_ball_is_ignored(crouch, release_pose) -> None:
    det = ShotDetector()
    _released(det, crouch, release_pose)
    ghost = BallObservation(330, 55, 10.0, False)
    assert det.update(release_pose, ghost, HOOP, 1.4) is None
    assert len(det.ball_trace) == 0


def test_miss_after_timeout(crouch, release_pose) -> None:
    det = ShotDetector()
    shot = _released(det, crouch, release_pose)

    under = ball(330, HOOP.bottom + 16)
    assert det.update(release_pose, under, HOOP, 2.5) is None   # too early

    done = det.update(release_pose, under, HOOP, 1.0 + 2.01)
    assert done is shot
    assert done.made is False
    assert done.t_end == pytest.approx(3.01)


def test_miss_needs_ball_well_below_hoop(crouch, release_pose) -> None:
    det = ShotDetector()
    _released(det, crouch, release_pose)
    assert det.update(release_pose, ball(330, HOOP.bottom + 10), HOOP, 3.5) is None
    assert det.state == RELEASED


def test_no_hoop_never_resolves_made_or_miss(crouch, release_pose) -> None:
    det = ShotDetector(DetectorConfig(release_timeout_s=None))
    _released(det, crouch, release_pose, hoop=None)
    for i in range(1, 100):
        assert det.update(release_pose, ball(330, 55), None, 1.0 + i * 0.5) is None
    assert det.state == RELEASED


def test_no_start_while_attempt_open(crouch, release_pose) -> None:
    det = ShotDetector(DetectorConfig(release_timeout_s=None))
    shot = _released(det, crouch, release_pose)
    for i in range(1, 10):
        det.update(crouch, None, HOOP, 1.0 + i * 0.1)
    assert det.in_flight is shot
    assert det.history == ()


# ──────────────────────────────────────────────────────────────────────────────
# Stale timeouts
# ──────────────────────────────────────────────────────────────────────────────

def test_unresolved_release_is_closed_after_timeout(crouch, release_pose) -> None:
    det = ShotDetector(DetectorConfig(release_timeout_s=3.0))
    shot = _released(det, crouch, release_pose, hoop=None)
    assert det.update(release_pose, None, None, 3.9) is None
    done = det.update(release_pose, None, None, 4.1)
    assert done is shot
    assert done.made is None
    assert done.t_end == 4.1
    assert det.history == (shot,)


def test_unreleased_start_is_closed_after_timeout(crouch) -> None:
    det = ShotDetector(DetectorConfig(start_timeout_s=1.0))
    det.update(crouch, None, None, 0.0)
    assert det.update(crouch, None, None, 0.9) is None
    done = det.update(crouch, None, None, 1.2)
    assert done is not None
    assert done.t_release is None
    assert done.made is None

    # detector is free again
    det.update(crouch, None, None, 1.3)
    assert det.state == TRACKING
    assert det.in_flight is not done


# ──────────────────────────────────────────────────────────────────────────────
# Apex, trace, finalization, clock
# ──────────────────────────────────────────────────────────────────────────────

def test_apex_is_highest_ball_point_after_release(crouch, release_pose) -> None:
    det = ShotDetector()
    shot = _released(det, crouch, release_pose)
    path = [(1.1, 200), (1.2, 120), (1.3, 20), (1.4, 22), (1.5, 40)]
    for t, y in path:
        det.update(release_pose, ball(250, y), HOOP, t)
    assert shot.t_apex == 1.3


def test_apex_filled_on_finalize(crouch, release_pose) -> None:
    det = ShotDetector()
    _released(det, crouch, release_pose)
    det.update(release_pose, ball(250, 30), HOOP, 1.1)
    done = det.update(release_pose, ball(330, 55), HOOP, 1.2)
    assert done.t_apex == 1.1


def test_ball_trace_keeps_last_sixty(standing) -> None:
    det = ShotDetector()
    for i in range(75):
        det.update(standing, ball(i, i), None, float(i))
    assert len(det.ball_trace) == 60
    assert det.ball_trace[0] == (15, 15)
    assert det.ball_trace[-1] == (74, 74)


def test_finalized_attempt_is_read_only(crouch, release_pose) -> None:
    det = ShotDetector()
    _released(det, crouch, release_pose)
    done = det.update(release_pose, ball(330, 55), HOOP, 1.4)
    with pytest.raises(dataclasses.FrozenInstanceError):
        done.made = False


def test_non_increasing_timestamp_is_rejected(crouch) -> None:
    det = ShotDetector()
    det.update(crouch, None, None, 1.0)
    shot = det.in_flight
    with pytest.raises(TimestampOrderError):
        det.update(crouch, None, None, 1.0)
    with pytest.raises(TimestampOrderError):
        det.update(crouch, None, None, 0.5)
    assert det.in_flight is shot
    assert len(shot.samples) == 1


def test_history_accumulates_and_reset_clears(crouch, release_pose) -> None:
    det = ShotDetector()
    t = 0.0
    for _ in range(3):
        det.update(crouch, None, HOOP, t + 0.1)
        det.update(release_pose, None, HOOP, t + 0.2)
        det.update(release_pose, ball(330, 55), HOOP, t + 0.3)
        t += 1.0
    assert [a.made for a in det.history] == [True, True, True]
    assert len({a.id for a in det.history}) == 3

    det.reset()
    assert det.history == ()
    assert det.state == IDLE
    det.update(crouch, None, HOOP, 0.0)   # clock restarts
    assert det.state == TRACKING
