# regions/base_region.py

from typing import List, Tuple

import numpy as np


class Region:
    """
    A sub-area of the canvas assigned to exactly one canvas item.

    Coordinates are canvas pixels. Subclasses implement the vectorised
    containment predicate; the scalar `contains_point` goes through the same
    code path so hit-testing and rendering masks can never disagree.
    """

    def __init__(self, index: int):
        self.index = index

    # --- Geometry -----------------------------------------------------------

    @property
    def get_bbox(self) -> List[float]:
        """Returns [min_x, min_y, max_x, max_y]."""
        raise NotImplementedError

    @property
    def draw_box(self) -> Tuple[float, float, float, float]:
        """(x, y, w, h) of the box an image is sampled into before clipping."""
        raise NotImplementedError

    @property
    def centroid(self) -> Tuple[float, float]:
        raise NotImplementedError

    @property
    def area(self) -> float:
        raise NotImplementedError

    def contains_points(self, xs, ys) -> np.ndarray:
        raise NotImplementedError

    def contains_point(self, x: float, y: float) -> bool:
        mask = self.contains_points(np.array([x], dtype=float), np.array([y], dtype=float))
        return bool(mask[0])

    def __repr__(self):
        return f"{type(self).__name__}(index={self.index}, bbox={self.get_bbox})"
