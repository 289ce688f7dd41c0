"""Points resources and offset strategies.

This package contains the numeric resources entities fight over:
- points.py: Bounded Points, temporary PointsBurst, storage backends
- points_offset.py: Offset strategies and their dispatch functions
"""

from .points import Points, PointsBurst, TempPoints, RecordPoints
from .points_offset import (
    PointsOffset,
    AbsoluteOffset,
    RatioOffset,
    PowerOffset,
    ExperienceOffset,
    get_absolute_offset,
    get_scaled_offset,
    apply_offset,
    offset_is_positive,
    offset_to_json,
    offset_from_json,
)

__all__ = [
    "Points",
    "PointsBurst",
    "TempPoints",
    "RecordPoints",
    "PointsOffset",
    "AbsoluteOffset",
    "RatioOffset",
    "PowerOffset",
    "ExperienceOffset",
    "get_absolute_offset",
    "get_scaled_offset",
    "apply_offset",
    "offset_is_positive",
    "offset_to_json",
    "offset_from_json",
]
