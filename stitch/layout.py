"""Geometry calculator: partitions a canvas into one region per item.

Rectangular layouts (stack, grid) are built from shared edge coordinates so
adjacent regions meet on the exact same float. Trio layouts come from the
fixed `TRIO_PATTERNS` table below; both the wedge clip polygons and the
separator spokes are read from that one table.
"""
import logging
import math
from typing import Dict, List, Tuple

from stitch.constants import LAYOUT_MODES, STACK_DIRECTIONS, TRIO_PATTERN_NAMES
from stitch.regions import PolygonRegion, RectRegion, Region

logger = logging.getLogger(__name__)

Segment = Tuple[Tuple[float, float], Tuple[float, float]]


class ConfigurationError(ValueError):
    """Raised when mode, item count or canvas size cannot produce a layout."""


# Anchors: corners, edge midpoints and the center, as fractions of (width, height)
ANCHORS: Dict[str, Tuple[float, float]] = {
    'tl': (0.0, 0.0), 'tm': (0.5, 0.0), 'tr': (1.0, 0.0),
    'lm': (0.0, 0.5), 'c': (0.5, 0.5), 'rm': (1.0, 0.5),
    'bl': (0.0, 1.0), 'bm': (0.5, 1.0), 'br': (1.0, 1.0),
}

# pattern -> (three wedge polygons in region order, three spokes drawn from the center)
TRIO_PATTERNS: Dict[str, Dict[str, list]] = {
    'y-down': {
        'wedges': [
            ['tl', 'tr', 'c'],
            ['tl', 'bl', 'bm', 'c'],
            ['tr', 'c', 'bm', 'br'],
        ],
        'spokes': ['tl', 'tr', 'bm'],
    },
    'y-up': {
        'wedges': [
            ['bl', 'br', 'c'],
            ['tl', 'tm', 'c', 'bl'],
            ['tr', 'br', 'c', 'tm'],
        ],
        'spokes': ['bl', 'br', 'tm'],
    },
    't-left': {
        'wedges': [
            ['tl', 'tm', 'c', 'lm'],
            ['lm', 'c', 'bm', 'bl'],
            ['tm', 'tr', 'br', 'bm'],
        ],
        'spokes': ['tm', 'bm', 'lm'],
    },
    't-right': {
        'wedges': [
            ['tm', 'tr', 'rm', 'c'],
            ['c', 'rm', 'br', 'bm'],
            ['tl', 'tm', 'bm', 'bl'],
        ],
        'spokes': ['tm', 'bm', 'rm'],
    },
}


def resolve_anchor(name: str, width: float, height: float) -> Tuple[float, float]:
    fx, fy = ANCHORS[name]
    return (fx * width, fy * height)


def trio_polygons(pattern: str, width: float, height: float) -> List[List[Tuple[float, float]]]:
    if pattern not in TRIO_PATTERNS:
        raise ConfigurationError(f"Unknown trio pattern: {pattern!r} (expected one of {TRIO_PATTERN_NAMES})")
    return [[resolve_anchor(a, width, height) for a in wedge] for wedge in TRIO_PATTERNS[pattern]['wedges']]


def validate_canvas(width, height):
    if width is None or height is None or width <= 0 or height <= 0:
        raise ConfigurationError(f"Canvas size must be positive, got {width}x{height}")


def grid_columns(count: int) -> int:
    cols = math.isqrt(count) if count > 0 else 0
    if count < 1 or cols * cols != count:
        raise ConfigurationError(f"Grid mode needs a perfect-square item count, got {count}")
    return cols


def validate_item_count(mode: str, count: int) -> None:
    """Checks the per-mode count invariant; raises ConfigurationError on violation."""
    if mode == 'stack':
        if count < 2:
            raise ConfigurationError(f"Stack mode needs at least 2 items, got {count}")
    elif mode == 'grid':
        grid_columns(count)
    elif mode == 'trio':
        if count != 3:
            raise ConfigurationError(f"Trio mode needs exactly 3 items, got {count}")
    else:
        raise ConfigurationError(f"Unknown layout mode: {mode!r} (expected one of {LAYOUT_MODES})")


def _edges(extent: float, parts: int) -> List[float]:
    # i * extent / parts keeps the final edge exactly equal to extent
    return [i * extent / parts for i in range(parts + 1)]


def compute_regions(mode: str, count: int, width: float, height: float,
                    stack_direction: str = 'vertical', trio_pattern: str = 'y-down') -> List[Region]:
    """
    Returns `count` regions, index-aligned with the item list, tiling a
    width x height canvas.
    """
    validate_canvas(width, height)
    validate_item_count(mode, count)

    regions: List[Region] = []
    if mode == 'stack':
        if stack_direction not in STACK_DIRECTIONS:
            raise ConfigurationError(f"Unknown stack direction: {stack_direction!r}")
        if stack_direction == 'vertical':
            ys = _edges(height, count)
            for i in range(count):
                regions.append(RectRegion(i, 0, ys[i], width, ys[i + 1] - ys[i], x1=width, y1=ys[i + 1]))
        else:
            xs = _edges(width, count)
            for i in range(count):
                regions.append(RectRegion(i, xs[i], 0, xs[i + 1] - xs[i], height, x1=xs[i + 1], y1=height))
    elif mode == 'grid':
        cols = grid_columns(count)
        xs = _edges(width, cols)
        ys = _edges(height, cols)
        for i in range(count):
            row, col = divmod(i, cols)
            regions.append(RectRegion(i, xs[col], ys[row], xs[col + 1] - xs[col], ys[row + 1] - ys[row],
                                      x1=xs[col + 1], y1=ys[row + 1]))
    else:
        frame = (0, 0, width, height)
        for i, vertices in enumerate(trio_polygons(trio_pattern, width, height)):
            regions.append(PolygonRegion(i, vertices, frame))

    logger.debug("compute_regions: mode=%s count=%d canvas=%sx%s -> %s", mode, count, width, height, regions)
    return regions


def separator_segments(mode: str, count: int, width: float, height: float,
                       stack_direction: str = 'vertical', trio_pattern: str = 'y-down') -> List[Segment]:
    """Internal boundaries between regions, as line segments to stroke."""
    validate_canvas(width, height)
    validate_item_count(mode, count)

    segments: List[Segment] = []
    if mode == 'stack':
        if stack_direction == 'vertical':
            for y in _edges(height, count)[1:-1]:
                segments.append(((0, y), (width, y)))
        else:
            for x in _edges(width, count)[1:-1]:
                segments.append(((x, 0), (x, height)))
    elif mode == 'grid':
        cols = grid_columns(count)
        xs = _edges(width, cols)
        ys = _edges(height, cols)
        for i in range(1, cols):
            segments.append(((xs[i], 0), (xs[i], height)))
            segments.append(((0, ys[i]), (width, ys[i])))
    else:
        if trio_pattern not in TRIO_PATTERNS:
            raise ConfigurationError(f"Unknown trio pattern: {trio_pattern!r}")
        center = resolve_anchor('c', width, height)
        for anchor in TRIO_PATTERNS[trio_pattern]['spokes']:
            segments.append((center, resolve_anchor(anchor, width, height)))
    return segments
