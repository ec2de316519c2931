"""Renders a composition into a single Pillow image and exports it.

Draw order: background fill, then every region in index order (image,
placeholder or pending fill, clipped to the pixels that region owns), then
separator strokes in the background color, then the optional border.
"""
import io
import logging
import math
import os
from typing import Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageColor, ImageDraw
from reportlab.pdfgen import canvas as pdf_canvas

from stitch.constants import PENDING_FILL
from stitch.hit_test import layout_ownership
from stitch.layout import ConfigurationError
from stitch.mapper import cover_crop
from stitch.model import CanvasConfig, CanvasItem, ImageItem, LayoutSpec, PlaceholderItem, StitchModel

logger = logging.getLogger(__name__)


def _pixel_box(draw_box: Tuple[float, float, float, float], width: int, height: int) -> Tuple[int, int, int, int]:
    """Smallest whole-pixel box covering a float (x, y, w, h) box, limited to the canvas."""
    x, y, w, h = draw_box
    left = max(0, int(math.floor(x)))
    top = max(0, int(math.floor(y)))
    right = min(width, int(math.ceil(x + w)))
    bottom = min(height, int(math.ceil(y + h)))
    return left, top, right, bottom


def _resample(image: Image.Image, box: Tuple[float, float, float, float], size: Tuple[int, int]) -> Image.Image:
    """Resamples `box` of `image` to `size`; where the box leaves the image, edge pixels are repeated."""
    left, top, right, bottom = box
    if left >= 0 and top >= 0 and right <= image.width and bottom <= image.height:
        return image.resize(size, Image.Resampling.BILINEAR, box=box)

    origin_x, origin_y = int(math.floor(left)), int(math.floor(top))
    ix0 = min(max(0, origin_x), image.width - 1)
    iy0 = min(max(0, origin_y), image.height - 1)
    ix1 = max(min(image.width, int(math.ceil(right))), ix0 + 1)
    iy1 = max(min(image.height, int(math.ceil(bottom))), iy0 + 1)
    pixels = np.asarray(image.crop((ix0, iy0, ix1, iy1)))
    pad = ((max(0, iy0 - origin_y), max(0, int(math.ceil(bottom)) - iy1)),
           (max(0, ix0 - origin_x), max(0, int(math.ceil(right)) - ix1)), (0, 0))
    padded = Image.fromarray(np.pad(pixels, pad, mode='edge'))
    origin_x, origin_y = ix0 - pad[1][0], iy0 - pad[0][0]
    return padded.resize(size, Image.Resampling.BILINEAR,
                         box=(left - origin_x, top - origin_y, right - origin_x, bottom - origin_y))


def _sample_image(image: Image.Image, item: ImageItem, draw_box: Tuple[float, float, float, float],
                  pixel_box: Tuple[int, int, int, int]) -> Image.Image:
    """
    Draws the item's crop into a transparent tile covering `pixel_box`.

    The crop is mapped onto the float `draw_box`, not the whole-pixel box
    around it; the source box is widened by however much the pixel box sticks
    out so the image is never stretched to fill the snapped edges.
    """
    x, y, w, h = draw_box
    left, top, right, bottom = pixel_box
    tile = Image.new('RGBA', (right - left, bottom - top), (0, 0, 0, 0))

    crop = cover_crop(w, h, item.natural_width, item.natural_height, item.zoom, item.offset_x, item.offset_y)
    (sx0, sy0, sx1, sy1), (fx0, fy0, fx1, fy1) = crop.visible(item.natural_width, item.natural_height)
    # where the visible part lands on the canvas
    dx0, dx1 = x + fx0 * w, x + fx1 * w
    dy0, dy1 = y + fy0 * h, y + fy1 * h
    px0, px1 = max(left, int(math.floor(dx0))), min(right, int(math.ceil(dx1)))
    py0, py1 = max(top, int(math.floor(dy0))), min(bottom, int(math.ceil(dy1)))
    if sx1 <= sx0 or sy1 <= sy0 or px1 <= px0 or py1 <= py0:
        return tile

    kx = (sx1 - sx0) / (dx1 - dx0)
    ky = (sy1 - sy0) / (dy1 - dy0)
    # the decoded pixels may not match the recorded natural size
    scale_x = image.width / item.natural_width
    scale_y = image.height / item.natural_height
    box = ((sx0 - (dx0 - px0) * kx) * scale_x, (sy0 - (dy0 - py0) * ky) * scale_y,
           (sx1 + (px1 - dx1) * kx) * scale_x, (sy1 + (py1 - dy1) * ky) * scale_y)
    if image.mode != 'RGBA':
        image = image.convert('RGBA')
    tile.paste(_resample(image, box, (px1 - px0, py1 - py0)), (px0 - left, py0 - top))
    return tile


def _item_tile(item: CanvasItem, images, draw_box: Tuple[float, float, float, float],
               pixel_box: Tuple[int, int, int, int]) -> Image.Image:
    tile_size = (pixel_box[2] - pixel_box[0], pixel_box[3] - pixel_box[1])
    if isinstance(item, PlaceholderItem):
        return Image.new('RGBA', tile_size, ImageColor.getcolor(item.color, 'RGBA'))
    if isinstance(item, ImageItem):
        entry = images.get(item.source_ref) if images is not None else None
        if entry is not None and entry.ready:
            return _sample_image(entry.image, item, draw_box, pixel_box)
        logger.debug("render: %s not decoded (%s), drawing pending fill",
                     item.source_ref, entry.state if entry is not None else 'absent')
    return Image.new('RGBA', tile_size, PENDING_FILL)


def _stroke_segments(draw: ImageDraw.ImageDraw, segments, color, thickness: int):
    radius = thickness / 2.0
    for start, end in segments:
        draw.line([start, end], fill=color, width=thickness)
        # round caps
        for px, py in (start, end):
            draw.ellipse([px - radius, py - radius, px + radius, py + radius], fill=color)


def _stroke_border(draw: ImageDraw.ImageDraw, width: int, height: int, color, thickness: int):
    # Pillow grows the outline inwards from the box edge, which is the same as a
    # stroke centered on a rectangle inset by half the thickness
    draw.rectangle([0, 0, width - 1, height - 1], outline=color, width=thickness)


def render(config: CanvasConfig, layout: LayoutSpec, items: Sequence[CanvasItem], images=None) -> Image.Image:
    """
    Renders the full canvas. `images` maps source references to cache entries
    (anything with a `get` returning an object with `ready` and `image`).
    Raises ConfigurationError instead of rendering a partial canvas.
    """
    config.validate()
    width, height = config.width, config.height
    regions = layout.regions(len(items), width, height)
    if len(regions) != len(items):
        raise ConfigurationError(f"{len(items)} items but {len(regions)} regions")

    background = ImageColor.getcolor(config.background_color, 'RGBA')
    canvas = Image.new('RGBA', (width, height), background)
    owners = layout_ownership(layout.mode, len(items), width, height, layout.stack_direction, layout.trio_pattern)

    for region, item in zip(regions, items):
        pixel_box = _pixel_box(region.draw_box, width, height)
        left, top, right, bottom = pixel_box
        if right <= left or bottom <= top:
            continue
        tile = _item_tile(item, images, region.draw_box, pixel_box)
        owned = owners[top:bottom, left:right] == region.index
        mask = Image.fromarray(owned.astype(np.uint8) * 255)
        base = canvas.crop((left, top, right, bottom))
        canvas.paste(Image.alpha_composite(base, tile), (left, top), mask)

    draw = ImageDraw.Draw(canvas)
    if config.separator_thickness > 0:
        segments = layout.separators(len(items), width, height)
        _stroke_segments(draw, segments, background, config.separator_thickness)

    if config.border.enabled and config.border.thickness > 0:
        _stroke_border(draw, width, height, ImageColor.getcolor(config.border.color, 'RGBA'), config.border.thickness)

    logger.debug("render: %dx%d, mode=%s, %d items", width, height, layout.mode, len(items))
    return canvas


def render_model(model: StitchModel, images=None) -> Image.Image:
    return render(model.config, model.layout, model.items, images)


# ─── Export ────────────────────────────────────────────────────────────────────

def export_png(image: Image.Image, path: str) -> str:
    image.save(path, 'PNG')
    logger.info("export_png: wrote %s (%dx%d)", path, image.width, image.height)
    return path


def export_pdf(image: Image.Image, path: str) -> str:
    """Writes a single-page PDF whose page is exactly the canvas size, in points."""
    width, height = image.size
    pdf = pdf_canvas.Canvas(path, pagesize=(width, height))
    buf = io.BytesIO()
    image.convert('RGB').save(buf, 'PNG')
    buf.seek(0)
    pdf.drawInlineImage(Image.open(buf), 0, 0, width=width, height=height, preserveAspectRatio=False)
    pdf.showPage()
    pdf.save()
    logger.info("export_pdf: wrote %s (%dx%d)", path, width, height)
    return path


def export(model: StitchModel, path: str, images=None, image: Optional[Image.Image] = None) -> str:
    """Renders (unless `image` is given) and writes PNG or PDF based on the file extension."""
    if image is None:
        image = render_model(model, images)
    ext = os.path.splitext(path)[1].lower()
    if ext == '.pdf':
        return export_pdf(image, path)
    if ext in ('', '.png'):
        return export_png(image, path if ext else path + '.png')
    raise ValueError(f"Unsupported export format: '{ext}' (use .png or .pdf)")
