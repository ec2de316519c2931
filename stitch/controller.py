import logging
from typing import Callable, List, Optional, Sequence, Tuple

from stitch.constants import SLOT_OPTIONS
from stitch.hit_test import DisplayMapping, locate
from stitch.mapper import clamp_offset, source_scale
from stitch.model import GalleryImage, ImageItem, StitchModel

logger = logging.getLogger(__name__)

OffsetCallback = Callable[[int, float, float], None]


class DragSession:
    """The item being panned and the last pointer position seen, in screen pixels."""

    def __init__(self, item_index: int, last_x: float, last_y: float):
        self.item_index = item_index
        self.last_x = last_x
        self.last_y = last_y

    def __repr__(self):
        return f"DragSession(item_index={self.item_index}, last=({self.last_x}, {self.last_y}))"


class DragController:
    """
    Idle -> Dragging on a press over an image region, back to Idle on release
    or when the pointer leaves the canvas. While dragging, pointer deltas are
    converted to source pixels and subtracted from the item's pan offset.
    """

    def __init__(self, model: StitchModel, on_offset_change: Optional[OffsetCallback] = None):
        self.model = model
        self.session: Optional[DragSession] = None
        self.on_offset_change = on_offset_change

    @property
    def dragging(self) -> bool:
        return self.session is not None

    def press(self, screen_x: float, screen_y: float, display: DisplayMapping) -> bool:
        """Starts a drag if the pointer is over an image. Returns True when a drag started."""
        if self.session is not None:
            logger.debug("DragController.press: already dragging item %d, ignoring", self.session.item_index)
            return False
        index = locate(display.to_canvas(screen_x, screen_y), self.model.regions())
        if index is None or not isinstance(self.model.items[index], ImageItem):
            return False
        self.session = DragSession(index, screen_x, screen_y)
        logger.debug("DragController.press: dragging item %d", index)
        return True

    def move(self, screen_x: float, screen_y: float, display: DisplayMapping) -> Optional[Tuple[float, float]]:
        """Applies one drag step. Returns the new (offset_x, offset_y), or None when idle."""
        session = self.session
        if session is None:
            return None
        index = session.item_index
        item = self.model.items[index] if index < len(self.model.items) else None
        if not isinstance(item, ImageItem):
            # the item was replaced or trimmed under the drag
            self.session = None
            return None

        region = self.model.regions()[index]
        dest_w, dest_h = region.draw_box[2], region.draw_box[3]
        # bounds depend on the current zoom, so recompute on every step
        crop_scale_x, crop_scale_y = source_scale(dest_w, dest_h, item.natural_width, item.natural_height, item.zoom)
        scale_x = crop_scale_x * display.scale_x
        scale_y = crop_scale_y * display.scale_y

        dx = screen_x - session.last_x
        dy = screen_y - session.last_y
        session.last_x, session.last_y = screen_x, screen_y

        new_x, new_y = clamp_offset(item.offset_x - dx * scale_x, item.offset_y - dy * scale_y,
                                    dest_w, dest_h, item.natural_width, item.natural_height, item.zoom)
        if (new_x, new_y) != (item.offset_x, item.offset_y):
            self.model.set_offset(index, new_x, new_y)
            logger.debug("DragController.move: item %d offset -> (%.2f, %.2f)", index, new_x, new_y)
            if self.on_offset_change:
                self.on_offset_change(index, new_x, new_y)
        return new_x, new_y

    def release(self):
        if self.session is not None:
            logger.debug("DragController.release: item %d", self.session.item_index)
        self.session = None

    # leaving the canvas ends a drag the same way; the last offset is kept
    leave = release


class EditorController:
    """
    Interaction layer for a host UI: click-to-assign from the gallery, panning,
    zoom and layout changes. Pointer coordinates are screen pixels relative to
    the widget showing the canvas; `display` maps them onto the canvas.
    """

    def __init__(self, model: StitchModel, images=None, on_offset_change: Optional[OffsetCallback] = None):
        self.model = model
        self.images = images
        self.drag = DragController(model, on_offset_change)

    # --- Pointer ------------------------------------------------------------

    def on_press(self, screen_x: float, screen_y: float, display: DisplayMapping) -> Optional[str]:
        """Returns 'assigned', 'drag' or None for a no-op."""
        if self.drag.dragging:
            return None
        index = locate(display.to_canvas(screen_x, screen_y), self.model.regions())
        if index is None:
            return None

        selected = self.model.selected_gallery_image
        if selected is not None:
            self.model.assign_image(index, selected)
            self.model.select_gallery_image(None)
            if self.images is not None:
                self.images.request(selected.source_ref)
            return 'assigned'

        if self.drag.press(screen_x, screen_y, display):
            return 'drag'
        return None

    def on_drag(self, screen_x: float, screen_y: float, display: DisplayMapping):
        return self.drag.move(screen_x, screen_y, display)

    def on_release(self):
        self.drag.release()

    def on_leave(self):
        self.drag.leave()

    # --- Items and layout ---------------------------------------------------

    def set_zoom(self, index: int, zoom: float):
        self.model.set_zoom(index, zoom)

    def set_slot_count(self, count: int):
        options = SLOT_OPTIONS[self.model.layout.mode]
        if count not in options:
            logger.warning("EditorController.set_slot_count: %d not offered for %s mode (%s)",
                           count, self.model.layout.mode, options)
        self.drag.release()
        self.model.set_slot_count(count)

    def set_mode(self, mode: str):
        self.drag.release()
        self.model.set_mode(mode)

    def reset_canvas(self):
        self.drag.release()
        self.model.reset_items()

    def add_images(self, images: Sequence[GalleryImage]) -> List[int]:
        indices = []
        for image in images:
            indices.append(self.model.add_to_gallery(image))
            if self.images is not None:
                self.images.request(image.source_ref)
        return indices

    def fill_slots(self, images: Sequence[GalleryImage]):
        """Assigns images to slots in order, starting from slot 0."""
        for index, image in enumerate(images[:self.model.slot_count]):
            self.model.assign_image(index, image)
            if self.images is not None:
                self.images.request(image.source_ref)
