"""
export.py
──────────────────────────────────────────────────────────────────────────────
JSON form of finished attempts: an array of flat objects keyed

    id, tStart, tRelease, tApex, tEnd, made, releaseElbowAngleDeg, kneeDipAngleDeg

Per-frame pose samples are working state and are not exported.
"""

from __future__ import annotations

import json
import math
from typing import Any, Dict, Iterable, List

from .errors import AttemptDecodeError
from .shot_detector import ShotAttempt

# JSON key → attribute
_FIELDS = (
    ("id",                   "id"),
    ("tStart",               "t_start"),
    ("tRelease",             "t_release"),
    ("tApex",                "t_apex"),
    ("tEnd",                 "t_end"),
    ("made",                 "made"),
    ("releaseElbowAngleDeg", "release_elbow_angle_deg"),
    ("kneeDipAngleDeg",      "knee_dip_angle_deg"),
)
_FLOAT_KEYS = {"tStart", "tRelease", "tApex", "tEnd", "releaseElbowAngleDeg", "kneeDipAngleDeg"}


def attempt_to_dict(attempt: ShotAttempt) -> Dict[str, Any]:
    return {key: getattr(attempt, attr) for key, attr in _FIELDS}


def attempt_from_dict(data: Dict[str, Any]) -> ShotAttempt:
    if not isinstance(data, dict):
        raise AttemptDecodeError(f"attempt must be an object, got {type(data).__name__}")
    values: Dict[str, Any] = {}
    for key, attr in _FIELDS:
        if key == "id" or key == "tStart":
            if data.get(key) is None:
                raise AttemptDecodeError(f"attempt is missing {key!r}")
        value = data.get(key)
        if key == "id":
            if not isinstance(value, str) or not value:
                raise AttemptDecodeError(f"bad attempt id {value!r}")
        elif key == "made":
            if value is not None and not isinstance(value, bool):
                raise AttemptDecodeError(f"'made' must be true, false or null, got {value!r}")
        elif key in _FLOAT_KEYS and value is not None:
            if isinstance(value, bool) or not isinstance(value, (int, float)) \
                    or not math.isfinite(value):
                raise AttemptDecodeError(f"{key!r} must be a finite number, got {value!r}")
            value = float(value)
        values[attr] = value

    attempt = ShotAttempt(**values)
    if attempt.t_end is not None:
        attempt.seal()
    return attempt


def attempts_to_json(attempts: Iterable[ShotAttempt], indent: int | None = None) -> str:
    return json.dumps([attempt_to_dict(a) for a in attempts], indent=indent)


def attempts_from_json(text: str) -> List[ShotAttempt]:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise AttemptDecodeError(f"invalid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise AttemptDecodeError("expected a JSON array of attempts")
    return [attempt_from_dict(item) for item in payload]
