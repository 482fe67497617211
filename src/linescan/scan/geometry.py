"""Geometry transform for the sample line.

The active line is always recomputed from the original (user-drawn) line,
the current vertical offset and the current rotation. Nothing is applied
incrementally, so repeated adjustments never drift.
"""

import math

from linescan.core.types import LineSegment, Point2D

__all__ = ['transform_line']


def _rotate_about(point: Point2D, center: Point2D, cos_a: float, sin_a: float) -> Point2D:
    dx = point.x - center.x
    dy = point.y - center.y
    return Point2D(
        center.x + dx * cos_a - dy * sin_a,
        center.y + dx * sin_a + dy * cos_a,
    )


def transform_line(original: LineSegment, y_offset: float, rotation_degrees: float) -> LineSegment:
    """Rotate a line about its midpoint, then shift it vertically.

    Parameters
    ----------
    original : LineSegment
        Base line as drawn.
    y_offset : float
        Vertical shift in pixels, added after rotation (not rotated).
    rotation_degrees : float
        Rotation angle in degrees. Positive values rotate clockwise on screen
        (image y axis points down).

    Returns
    -------
    LineSegment
        Effective sample line for the current frame.

    Notes
    -----
    Inputs are not validated; NaN in gives NaN out.

    Examples
    --------
    >>> line = LineSegment(Point2D(0, 0), Point2D(10, 0))
    >>> transform_line(line, 5, 0)
    LineSegment(start=Point2D(x=0.0, y=5.0), end=Point2D(x=10.0, y=5.0))
    """
    center = original.midpoint
    radians = math.radians(rotation_degrees)
    cos_a = math.cos(radians)
    sin_a = math.sin(radians)

    start = _rotate_about(original.start, center, cos_a, sin_a)
    end = _rotate_about(original.end, center, cos_a, sin_a)

    return LineSegment(
        Point2D(start.x, start.y + y_offset),
        Point2D(end.x, end.y + y_offset),
    )
