from typing import List, Tuple

import numpy as np

from stitch.regions.base_region import Region
from stitch.utils.geometry import points_in_rect


class RectRegion(Region):
    def __init__(self, index: int, x: float, y: float, w: float, h: float, x1: float = None, y1: float = None):
        super().__init__(index)
        self.x = x
        self.y = y
        # Right/bottom edges can be given explicitly so neighbours share the exact same float
        self.x1 = x + w if x1 is None else x1
        self.y1 = y + h if y1 is None else y1

    @property
    def w(self) -> float:
        return self.x1 - self.x

    @property
    def h(self) -> float:
        return self.y1 - self.y

    @property
    def get_bbox(self) -> List[float]:
        return [self.x, self.y, self.x1, self.y1]

    @property
    def draw_box(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.w, self.h)

    @property
    def centroid(self) -> Tuple[float, float]:
        return ((self.x + self.x1) / 2, (self.y + self.y1) / 2)

    @property
    def area(self) -> float:
        return self.w * self.h

    def contains_points(self, xs, ys) -> np.ndarray:
        return points_in_rect(xs, ys, self.x, self.y, self.x1, self.y1)

    def __eq__(self, other):
        if not isinstance(other, RectRegion):
            return NotImplemented
        return (self.index, self.x, self.y, self.w, self.h) == (other.index, other.x, other.y, other.w, other.h)

    def __repr__(self):
        return f"RectRegion(index={self.index}, x={self.x}, y={self.y}, w={self.w}, h={self.h})"
