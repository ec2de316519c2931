"""Cover-fit source region mapping.

Given a destination box and a source image, pick the crop of the source to
sample so the crop has the destination's aspect ratio (no letterboxing),
magnified by `zoom` and translated by a pan offset expressed in source
pixels. Offsets are clamped so the crop stays inside the source along every
axis where it fits. Zooming out past cover-fit makes the crop larger than the
source; only its `visible` part is sampled, into the matching part of the
destination, and the rest of the destination shows the background.
"""
import math
from typing import NamedTuple, Tuple

from stitch.constants import MAX_ZOOM, MIN_ZOOM


class SourceCrop(NamedTuple):
    sx: float
    sy: float
    width: float
    height: float

    @property
    def box(self) -> Tuple[float, float, float, float]:
        """(left, upper, right, lower), the form Pillow's resize(box=...) takes."""
        return (self.sx, self.sy, self.sx + self.width, self.sy + self.height)

    def visible(self, src_w: float, src_h: float):
        """
        The part of the crop that lies inside a src_w x src_h source.

        Returns (box, fractions): `box` is the in-bounds source box and
        `fractions` is where it lands in the destination, as (left, top,
        right, bottom) fractions of the destination size.
        """
        left = max(0.0, self.sx)
        top = max(0.0, self.sy)
        right = min(float(src_w), self.sx + self.width)
        bottom = min(float(src_h), self.sy + self.height)
        fractions = ((left - self.sx) / self.width, (top - self.sy) / self.height,
                     (right - self.sx) / self.width, (bottom - self.sy) / self.height)
        return (left, top, right, bottom), fractions


def clamp_zoom(zoom) -> float:
    if zoom is None:
        return 1.0
    zoom = float(zoom)
    if math.isnan(zoom):
        return 1.0
    return max(MIN_ZOOM, min(MAX_ZOOM, zoom))


def _check_positive(**dims):
    for name, value in dims.items():
        if value is None or value <= 0:
            raise ValueError(f"{name} must be positive, got {value}")


def crop_size(dest_w: float, dest_h: float, src_w: float, src_h: float, zoom: float = 1.0) -> Tuple[float, float]:
    """Size of the sampled crop before any offset is applied."""
    _check_positive(dest_w=dest_w, dest_h=dest_h, src_w=src_w, src_h=src_h)
    dest_ar = dest_w / dest_h
    src_ar = src_w / src_h
    if dest_ar > src_ar:
        s_width = float(src_w)
        s_height = s_width / dest_ar
    else:
        s_height = float(src_h)
        s_width = s_height * dest_ar

    zoom = clamp_zoom(zoom)
    s_width /= zoom
    s_height /= zoom
    # float noise at the cover-fit threshold must not push the crop off the source
    if s_width > src_w and math.isclose(s_width, src_w):
        s_width = float(src_w)
    if s_height > src_h and math.isclose(s_height, src_h):
        s_height = float(src_h)
    return s_width, s_height


def max_offsets(src_w: float, src_h: float, s_width: float, s_height: float) -> Tuple[float, float]:
    return max(0.0, (src_w - s_width) / 2), max(0.0, (src_h - s_height) / 2)


def clamp_axis(offset: float, max_offset: float) -> float:
    if max_offset <= 0:
        return 0.0
    return max(-max_offset, min(max_offset, float(offset or 0.0)))


def clamp_offset(offset_x: float, offset_y: float, dest_w: float, dest_h: float,
                 src_w: float, src_h: float, zoom: float = 1.0) -> Tuple[float, float]:
    """Clamps a pan offset to the range valid for the given geometry and zoom."""
    s_width, s_height = crop_size(dest_w, dest_h, src_w, src_h, zoom)
    max_x, max_y = max_offsets(src_w, src_h, s_width, s_height)
    return clamp_axis(offset_x, max_x), clamp_axis(offset_y, max_y)


def cover_crop(dest_w: float, dest_h: float, src_w: float, src_h: float,
               zoom: float = 1.0, offset_x: float = 0.0, offset_y: float = 0.0) -> SourceCrop:
    s_width, s_height = crop_size(dest_w, dest_h, src_w, src_h, zoom)
    max_x, max_y = max_offsets(src_w, src_h, s_width, s_height)
    sx = (src_w - s_width) / 2 + clamp_axis(offset_x, max_x)
    sy = (src_h - s_height) / 2 + clamp_axis(offset_y, max_y)
    # keep float noise from nudging the crop past the source edge; an oversize crop stays centered
    if s_width <= src_w:
        sx = min(max(sx, 0.0), src_w - s_width)
    if s_height <= src_h:
        sy = min(max(sy, 0.0), src_h - s_height)
    return SourceCrop(sx, sy, s_width, s_height)


def source_scale(dest_w: float, dest_h: float, src_w: float, src_h: float, zoom: float = 1.0) -> Tuple[float, float]:
    """Source pixels per destination pixel along x and y."""
    s_width, s_height = crop_size(dest_w, dest_h, src_w, src_h, zoom)
    return s_width / dest_w, s_height / dest_h
