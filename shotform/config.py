"""
config.py
──────────────────────────────────────────────────────────────────────────────
Thresholds, tunables and logging setup shared by every shotform module.

Module-level constants hold the reference values; the frozen dataclasses
bundle them for constructors so a caller can override one knob without
touching the rest.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Final, Optional


# ──────────────────────────────────────────────────────────────────────────────
# Keypoints
# ──────────────────────────────────────────────────────────────────────────────
MIN_LANDMARK_CONFIDENCE: Final[float] = 0.3
NUM_JOINTS: Final[int] = 17

# ──────────────────────────────────────────────────────────────────────────────
# Shot detector
# ──────────────────────────────────────────────────────────────────────────────
KNEE_BEND_START_DEG: Final[float] = 165.0
ELBOW_EXTENDED_RELEASE_DEG: Final[float] = 165.0
KNEE_MISSING_DEFAULT_DEG: Final[float] = 180.0

MADE_TOP_FRACTION: Final[float] = 0.30
MISS_TIMEOUT_S: Final[float] = 2.0
MISS_MARGIN_PX: Final[float] = 15.0

APEX_DROP_PX: Final[float] = 4.0
START_TIMEOUT_S: Final[Optional[float]] = None    # unreleased attempts stay open
RELEASE_TIMEOUT_S: Final[float] = 6.0

BALL_TRACE_LENGTH: Final[int] = 60

# ──────────────────────────────────────────────────────────────────────────────
# Ball localizer (orange basketball, RGB)
# ──────────────────────────────────────────────────────────────────────────────
BALL_MIN_PIXELS: Final[int] = 50
BALL_DISPLAY_RADIUS: Final[float] = 10.0

# ──────────────────────────────────────────────────────────────────────────────
# Metrics derivation
# ──────────────────────────────────────────────────────────────────────────────
FOLLOW_THROUGH_ELBOW_DEG: Final[float] = 150.0

# ──────────────────────────────────────────────────────────────────────────────
# Logging
# ──────────────────────────────────────────────────────────────────────────────
LOG_LEVEL: Final[str] = os.getenv("SHOTFORM_LOG_LEVEL", "INFO")
LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


@dataclass(frozen=True)
class DetectorConfig:
    """Tunables for :class:`~shotform.shot_detector.ShotDetector`.

    ``release_timeout_s`` force-closes a released attempt that never resolves;
    ``start_timeout_s`` (off by default) does the same for one that never
    releases.  ``None`` leaves such attempts open.
    """
    knee_bend_start_deg: float = KNEE_BEND_START_DEG
    elbow_release_deg: float = ELBOW_EXTENDED_RELEASE_DEG
    made_top_fraction: float = MADE_TOP_FRACTION
    miss_timeout_s: float = MISS_TIMEOUT_S
    miss_margin_px: float = MISS_MARGIN_PX
    apex_drop_px: float = APEX_DROP_PX
    start_timeout_s: Optional[float] = START_TIMEOUT_S
    release_timeout_s: Optional[float] = RELEASE_TIMEOUT_S
    trace_length: int = BALL_TRACE_LENGTH


@dataclass(frozen=True)
class BallColorRule:
    """Fixed RGB heuristic for a basketball's orange hue."""
    min_red: int = 150
    green_low: int = 70
    green_high: int = 180
    max_blue: int = 120
    min_red_minus_green: int = 30
    min_green_minus_blue: int = 10
    min_pixels: int = BALL_MIN_PIXELS
    radius: float = BALL_DISPLAY_RADIUS


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a stream handler to the ``shotform`` logger (idempotent)."""
    logger = logging.getLogger("shotform")
    logger.setLevel((level or LOG_LEVEL).upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
