"""
ball_localizer.py
──────────────────────────────────────────────────────────────────────────────
Colour-threshold basketball localizer.

One pass over the frame: every pixel matching a fixed orange rule votes for
the ball, and the centroid of the votes is the ball position.  No
orientation or depth; any orange object in shot pulls the centroid
toward it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .config import BallColorRule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BallObservation:
    x: float
    y: float
    radius: float
    valid: bool

    @classmethod
    def missing(cls) -> "BallObservation":
        return cls(0.0, 0.0, 0.0, False)

    @property
    def pos(self) -> Tuple[float, float]:
        return self.x, self.y


def ball_color_mask(
    frame: np.ndarray,
    rule: BallColorRule = BallColorRule(),
    channel_order: str = "rgb",
) -> np.ndarray:
    """Boolean H×W mask of ball-coloured pixels."""
    if frame.ndim != 3 or frame.shape[2] < 3:
        raise ValueError(f"expected an H×W×3 frame, got shape {frame.shape}")

    # widen before subtracting so uint8 cannot wrap
    px = frame[..., :3].astype(np.int16)
    if channel_order == "rgb":
        r, g, b = px[..., 0], px[..., 1], px[..., 2]
    elif channel_order == "bgr":
        b, g, r = px[..., 0], px[..., 1], px[..., 2]
    else:
        raise ValueError(f"unknown channel order {channel_order!r}")

    return (
        (r > rule.min_red)
        & (g > rule.green_low) & (g < rule.green_high)
        & (b < rule.max_blue)
        & (r - g > rule.min_red_minus_green)
        & (g - b > rule.min_green_minus_blue)
    )


class BallLocalizer:
    """
    Usage
    ─────
    localizer = BallLocalizer()
    obs = localizer.locate(rgb_frame)
    if obs.valid: ...
    """

    def __init__(
        self,
        rule: Optional[BallColorRule] = None,
        channel_order: str = "rgb",
    ):
        self.rule          = rule or BallColorRule()
        self.channel_order = channel_order

    def locate(self, frame: np.ndarray) -> BallObservation:
        mask = ball_color_mask(frame, self.rule, self.channel_order)
        ys, xs = np.nonzero(mask)
        count = int(xs.size)
        if count < self.rule.min_pixels:
            logger.debug("ball not found (%d matching px)", count)
            return BallObservation.missing()
        return BallObservation(
            x=float(xs.mean()),
            y=float(ys.mean()),
            radius=self.rule.radius,
            valid=True,
        )


def locate_ball(frame: np.ndarray, channel_order: str = "rgb") -> BallObservation:
    """Function form with the default colour rule."""
    return BallLocalizer(channel_order=channel_order).locate(frame)
