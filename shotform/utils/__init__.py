from .geometry import angle, avg, distance, incline_from_vertical, lerp, midpoint

__all__ = ["angle", "avg", "distance", "incline_from_vertical", "lerp", "midpoint"]
