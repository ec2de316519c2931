# geometry.py

import math
import re
from typing import List, Sequence, Tuple

import numpy as np
from PIL import ImageColor

from stitch.constants import presets_for_mode

Point = Tuple[float, float]

# Distance (in canvas pixels) under which a point counts as lying on an edge
EDGE_EPSILON = 1e-7


def parse_canvas_size(value: str, mode: str = 'stack') -> Tuple[int, int]:
    """Parses a canvas size string ('1280x720', '1280,720' or a preset name such as '720p')."""
    value = value.strip()
    presets = presets_for_mode(mode)
    for name, dims in presets.items():
        if value.lower() == name.lower():
            return dims

    match = re.match(r"^\s*(\d+)\s*[x×,]\s*(\d+)\s*$", value, re.IGNORECASE)
    if not match:
        raise ValueError(f"Invalid canvas size: '{value}' (expected WxH or one of {', '.join(presets)})")
    width, height = int(match.group(1)), int(match.group(2))
    if width <= 0 or height <= 0:
        raise ValueError(f"Canvas size must be positive, got {width}x{height}")
    return width, height


def parse_color(value: str) -> str:
    """Validates a color string understood by Pillow and returns it unchanged."""
    value = value.strip()
    # getrgb raises ValueError for unknown specifiers
    ImageColor.getrgb(value)
    return value


def polygon_area(vertices: Sequence[Point]) -> float:
    """Unsigned shoelace area."""
    total = 0.0
    n = len(vertices)
    for i in range(n):
        x1, y1 = vertices[i]
        x2, y2 = vertices[(i + 1) % n]
        total += x1 * y2 - x2 * y1
    return abs(total) / 2.0


def polygon_centroid(vertices: Sequence[Point]) -> Point:
    n = len(vertices)
    signed = 0.0
    cx = cy = 0.0
    for i in range(n):
        x1, y1 = vertices[i]
        x2, y2 = vertices[(i + 1) % n]
        cross = x1 * y2 - x2 * y1
        signed += cross
        cx += (x1 + x2) * cross
        cy += (y1 + y2) * cross
    if abs(signed) < 1e-12:
        # degenerate: fall back to the vertex mean
        return (sum(p[0] for p in vertices) / n, sum(p[1] for p in vertices) / n)
    signed *= 0.5
    return (cx / (6.0 * signed), cy / (6.0 * signed))


def points_on_segment(xs, ys, start: Point, end: Point, eps: float = EDGE_EPSILON) -> np.ndarray:
    """Vectorised test for points lying on the closed segment start→end."""
    x1, y1 = start
    x2, y2 = end
    dx, dy = x2 - x1, y2 - y1
    length = math.hypot(dx, dy)
    if length == 0:
        return (np.abs(xs - x1) <= eps) & (np.abs(ys - y1) <= eps)
    cross = dx * (ys - y1) - dy * (xs - x1)
    within = ((xs >= min(x1, x2) - eps) & (xs <= max(x1, x2) + eps) &
              (ys >= min(y1, y2) - eps) & (ys <= max(y1, y2) + eps))
    return within & (np.abs(cross) <= eps * length)


def points_in_polygon(xs, ys, vertices: Sequence[Point]) -> np.ndarray:
    """
    Ray-casting point-in-polygon test over numpy arrays, boundary inclusive.

    xs and ys are broadcast against each other, so a (1, W) row of x values
    and a (H, 1) column of y values yield an (H, W) mask.
    """
    xs = np.asarray(xs, dtype=float)
    ys = np.asarray(ys, dtype=float)
    shape = np.broadcast_shapes(xs.shape, ys.shape)
    inside = np.zeros(shape, dtype=bool)
    on_edge = np.zeros(shape, dtype=bool)

    n = len(vertices)
    j = n - 1
    for i in range(n):
        xi, yi = vertices[i]
        xj, yj = vertices[j]
        if yi != yj:
            crosses = (yi > ys) != (yj > ys)
            x_cross = (xj - xi) * (ys - yi) / (yj - yi) + xi
            inside ^= crosses & (xs < x_cross)
        on_edge |= points_on_segment(xs, ys, (xj, yj), (xi, yi))
        j = i
    return inside | on_edge


def points_in_rect(xs, ys, x0: float, y0: float, x1: float, y1: float) -> np.ndarray:
    """Inclusive bounds test, vectorised like points_in_polygon."""
    xs = np.asarray(xs, dtype=float)
    ys = np.asarray(ys, dtype=float)
    return (xs >= x0) & (xs <= x1) & (ys >= y0) & (ys <= y1)


def pixel_centers(width: int, height: int) -> Tuple[np.ndarray, np.ndarray]:
    """Returns a (1, W) row of x centers and a (H, 1) column of y centers."""
    xs = (np.arange(width, dtype=float) + 0.5)[np.newaxis, :]
    ys = (np.arange(height, dtype=float) + 0.5)[:, np.newaxis]
    return xs, ys


def bounding_box(vertices: Sequence[Point]) -> List[float]:
    xs = [p[0] for p in vertices]
    ys = [p[1] for p in vertices]
    return [min(xs), min(ys), max(xs), max(ys)]
