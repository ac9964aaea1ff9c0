from __future__ import annotations

import dataclasses
import logging

import pytest

from shotform.config import BallColorRule, DetectorConfig, configure_logging
from shotform.errors import KeypointFormatError, ShotFormError, TimestampOrderError


def test_detector_defaults() -> None:
    cfg = DetectorConfig()
    assert cfg.knee_bend_start_deg == 165.0
    assert cfg.elbow_release_deg == 165.0
    assert cfg.made_top_fraction == 0.30
    assert cfg.miss_timeout_s == 2.0
    assert cfg.trace_length == 60


def test_configs_are_frozen() -> None:
    with pytest.raises(dataclasses.FrozenInstanceError):
        DetectorConfig().miss_timeout_s = 5.0
    with pytest.raises(dataclasses.FrozenInstanceError):
        BallColorRule().min_pixels = 1


def test_configure_logging_is_idempotent() -> None:
    log = logging.getLogger("shotform")
    before = list(log.handlers)
    try:
        configure_logging("debug")
        configure_logging("info")
        added = [h for h in log.handlers if h not in before]
        assert len(added) <= 1
        assert log.level == logging.INFO
    finally:
        for h in log.handlers[:]:
            if h not in before:
                log.removeHandler(h)
        log.setLevel(logging.NOTSET)


def test_error_hierarchy() -> None:
    err = TimestampOrderError(1.0, 2.0)
    assert isinstance(err, ShotFormError)
    assert isinstance(err, ValueError)
    assert err.t == 1.0 and err.last_t == 2.0
    assert issubclass(KeypointFormatError, ValueError)
