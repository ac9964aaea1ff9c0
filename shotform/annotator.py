"""
annotator.py
──────────────────────────────────────────────────────────────────────────────
Pure-OpenCV diagnostic overlay.

Draws:
  • Pose skeleton        (usable joints only)
  • Ball marker + trail  (fading)
  • Hoop box             (colour flashes on the last outcome)
  • HUD: detector state, makes / attempts, last form score
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import cv2
import numpy as np

from .ball_localizer import BallObservation
from .keypoints import SKELETON_EDGES, Pose
from .shot_detector import IDLE, RELEASED, TRACKING, HoopRegion


# ──────────────────────────────────────────────────────────────────────────────
# Colour palette (BGR)
# ──────────────────────────────────────────────────────────────────────────────
_COLOUR = {
    "skeleton"  : (238, 211, 34),      # cyan-ish
    "joint"     : (255, 255, 0),
    "ball"      : (0, 140, 255),       # orange
    "trail"     : (0, 200, 255),
    "hoop"      : (255, 255, 255),
    "made"      : (80, 220, 80),
    "missed"    : (60, 60, 230),
    "hud_bg"    : (20, 20, 20),
    "text"      : (240, 240, 240),
    IDLE        : (180, 180, 180),
    TRACKING    : (0, 220, 255),
    RELEASED    : (0, 255, 150),
}


def _fade_colour(base: Tuple[int, int, int], alpha: float) -> Tuple[int, int, int]:
    return tuple(int(c * alpha) for c in base)


def _pt(x: float, y: float) -> Tuple[int, int]:
    return int(round(x)), int(round(y))


class Annotator:
    """Draws on a copy of the frame; the input is never modified."""

    def __init__(
        self,
        line_width: int = 2,
        font_scale: float = 0.55,
        hud_alpha: float = 0.65,
        show_skeleton: bool = True,
        show_trail: bool = True,
        show_hud: bool = True,
    ):
        self.line_width    = line_width
        self.font_scale    = font_scale
        self.hud_alpha     = hud_alpha
        self.show_skeleton = show_skeleton
        self.show_trail    = show_trail
        self.show_hud      = show_hud

        self._font = cv2.FONT_HERSHEY_SIMPLEX

    # ──────────────────────────────────────────────────────────────────────────
    def annotate(
        self,
        frame: np.ndarray,
        *,
        pose: Optional[Pose] = None,
        ball: Optional[BallObservation] = None,
        ball_trail: Optional[Sequence[Tuple[float, float]]] = None,
        hoop: Optional[HoopRegion] = None,
        state: str = IDLE,
        makes: int = 0,
        attempts: int = 0,
        last_made: Optional[bool] = None,
        last_score: Optional[int] = None,
    ) -> np.ndarray:
        out = frame.copy()

        if hoop is not None:
            self._draw_hoop(out, hoop, last_made)

        if self.show_trail and ball_trail:
            self._draw_trail(out, ball_trail)

        if ball is not None and ball.valid:
            centre = _pt(ball.x, ball.y)
            r = max(1, int(ball.radius))
            cv2.circle(out, centre, r, _COLOUR["ball"], -1, cv2.LINE_AA)
            cv2.circle(out, centre, r, (255, 255, 255), 1, cv2.LINE_AA)

        if self.show_skeleton and pose is not None:
            self._draw_skeleton(out, pose)

        if self.show_hud:
            self._draw_hud(out, state, makes, attempts, last_score)

        return out

    # ──────────────────────────────────────────────────────────────────────────
    # Private helpers
    # ──────────────────────────────────────────────────────────────────────────
    def _draw_hoop(self, out: np.ndarray, hoop: HoopRegion, last_made: Optional[bool]) -> None:
        col = _COLOUR["hoop"]
        if last_made is True:
            col = _COLOUR["made"]
        elif last_made is False:
            col = _COLOUR["missed"]
        cv2.rectangle(out, _pt(hoop.x, hoop.y), _pt(hoop.right, hoop.bottom),
                      col, self.line_width, cv2.LINE_AA)

    def _draw_trail(self, out: np.ndarray, trail: Sequence[Tuple[float, float]]) -> None:
        n = len(trail)
        for i in range(1, n):
            alpha = i / n
            cv2.line(out, _pt(*trail[i-1]), _pt(*trail[i]),
                     _fade_colour(_COLOUR["trail"], alpha), max(1, int(4 * alpha)), cv2.LINE_AA)

    def _draw_skeleton(self, out: np.ndarray, pose: Pose) -> None:
        for a, b in SKELETON_EDGES:
            p1, p2 = pose.usable(a), pose.usable(b)
            if p1 is None or p2 is None:
                continue
            cv2.line(out, _pt(p1.x, p1.y), _pt(p2.x, p2.y),
                     _COLOUR["skeleton"], self.line_width + 1, cv2.LINE_AA)
        for _, lm in pose:
            if lm.usable:
                cv2.circle(out, _pt(lm.x, lm.y), 4, _COLOUR["joint"], -1, cv2.LINE_AA)

    def _draw_hud(
        self,
        out: np.ndarray,
        state: str,
        makes: int,
        attempts: int,
        last_score: Optional[int],
    ) -> None:
        h, w = out.shape[:2]
        hud_h = min(h, 40)
        overlay = out[:hud_h, :w].copy()
        cv2.rectangle(overlay, (0, 0), (w, hud_h), _COLOUR["hud_bg"], -1)
        cv2.addWeighted(overlay, self.hud_alpha, out[:hud_h, :w],
                        1 - self.hud_alpha, 0, out[:hud_h, :w])

        fn, fs = self._font, self.font_scale
        cv2.putText(out, state.upper(), (10, 26), fn, fs, _COLOUR.get(state, _COLOUR["text"]),
                    1, cv2.LINE_AA)
        cv2.putText(out, f"FG {makes}/{attempts}", (120, 26), fn, fs, _COLOUR["text"],
                    1, cv2.LINE_AA)
        if last_score is not None:
            cv2.putText(out, f"FORM {last_score}", (240, 26), fn, fs, _COLOUR["text"],
                        1, cv2.LINE_AA)
