from typing import List, Sequence, Tuple

import numpy as np

from stitch.regions.base_region import Region
from stitch.utils.geometry import bounding_box, points_in_polygon, polygon_area, polygon_centroid


class PolygonRegion(Region):
    """
    A simple polygon clipped out of a larger frame.

    Images for a polygon region are drawn into `frame` (the whole canvas for
    trio wedges) and then clipped, so the draw box is the frame, not the
    polygon's own bounding box.
    """

    def __init__(self, index: int, vertices: Sequence[Tuple[float, float]], frame: Tuple[float, float, float, float]):
        super().__init__(index)
        if len(vertices) < 3:
            raise ValueError(f"Polygon region {index} needs at least 3 vertices, got {len(vertices)}")
        self.vertices: List[Tuple[float, float]] = [(float(x), float(y)) for x, y in vertices]
        self.frame = tuple(frame)

    @property
    def get_bbox(self) -> List[float]:
        return bounding_box(self.vertices)

    @property
    def draw_box(self) -> Tuple[float, float, float, float]:
        return self.frame

    @property
    def centroid(self) -> Tuple[float, float]:
        return polygon_centroid(self.vertices)

    @property
    def area(self) -> float:
        return polygon_area(self.vertices)

    def contains_points(self, xs, ys) -> np.ndarray:
        return points_in_polygon(xs, ys, self.vertices)

    def __eq__(self, other):
        if not isinstance(other, PolygonRegion):
            return NotImplemented
        return self.index == other.index and self.vertices == other.vertices

    def __repr__(self):
        return f"PolygonRegion(index={self.index}, vertices={self.vertices})"
