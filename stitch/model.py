import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from stitch.constants import (CANVAS_HEIGHT, CANVAS_WIDTH, DEFAULT_BACKGROUND, DEFAULT_BORDER_COLOR,
                              DEFAULT_BORDER_THICKNESS, DEFAULT_SEPARATOR, DEFAULT_SLOTS, LAYOUT_MODES,
                              PLACEHOLDER_COLORS, SLOT_OPTIONS, STACK_DIRECTIONS, TRIO_PATTERN_NAMES)
from stitch.layout import ConfigurationError, compute_regions, separator_segments, validate_canvas
from stitch.mapper import clamp_zoom
from stitch.regions import Region

logger = logging.getLogger(__name__)


# ─── Canvas configuration ──────────────────────────────────────────────────────

@dataclass
class BorderConfig:
    enabled: bool = False
    color: str = DEFAULT_BORDER_COLOR
    thickness: int = DEFAULT_BORDER_THICKNESS


@dataclass
class CanvasConfig:
    width: int = CANVAS_WIDTH
    height: int = CANVAS_HEIGHT
    background_color: str = DEFAULT_BACKGROUND
    separator_thickness: int = DEFAULT_SEPARATOR
    border: BorderConfig = field(default_factory=BorderConfig)

    def validate(self):
        validate_canvas(self.width, self.height)
        if self.separator_thickness < 0:
            raise ConfigurationError(f"Separator thickness must be >= 0, got {self.separator_thickness}")
        if self.border.thickness < 0:
            raise ConfigurationError(f"Border thickness must be >= 0, got {self.border.thickness}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'width': self.width,
            'height': self.height,
            'background_color': self.background_color,
            'separator_thickness': self.separator_thickness,
            'border': {
                'enabled': self.border.enabled,
                'color': self.border.color,
                'thickness': self.border.thickness,
            },
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'CanvasConfig':
        border = data.get('border', {}) or {}
        return CanvasConfig(
            width=int(data.get('width', CANVAS_WIDTH)),
            height=int(data.get('height', CANVAS_HEIGHT)),
            background_color=data.get('background_color', DEFAULT_BACKGROUND),
            separator_thickness=int(data.get('separator_thickness', DEFAULT_SEPARATOR)),
            border=BorderConfig(
                enabled=bool(border.get('enabled', False)),
                color=border.get('color', DEFAULT_BORDER_COLOR),
                thickness=int(border.get('thickness', DEFAULT_BORDER_THICKNESS)),
            ),
        )


@dataclass
class LayoutSpec:
    mode: str = 'stack'
    stack_direction: str = 'vertical'
    trio_pattern: str = 'y-down'

    def validate(self):
        if self.mode not in LAYOUT_MODES:
            raise ConfigurationError(f"Unknown layout mode: {self.mode!r} (expected one of {LAYOUT_MODES})")
        if self.stack_direction not in STACK_DIRECTIONS:
            raise ConfigurationError(f"Unknown stack direction: {self.stack_direction!r}")
        if self.trio_pattern not in TRIO_PATTERN_NAMES:
            raise ConfigurationError(f"Unknown trio pattern: {self.trio_pattern!r}")

    def regions(self, count: int, width: int, height: int) -> List[Region]:
        self.validate()
        return compute_regions(self.mode, count, width, height, self.stack_direction, self.trio_pattern)

    def separators(self, count: int, width: int, height: int):
        self.validate()
        return separator_segments(self.mode, count, width, height, self.stack_direction, self.trio_pattern)

    def to_dict(self) -> Dict[str, Any]:
        return {'mode': self.mode, 'stack_direction': self.stack_direction, 'trio_pattern': self.trio_pattern}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'LayoutSpec':
        return LayoutSpec(
            mode=data.get('mode', 'stack'),
            stack_direction=data.get('stack_direction', 'vertical'),
            trio_pattern=data.get('trio_pattern', 'y-down'),
        )


# ─── Canvas items ──────────────────────────────────────────────────────────────

class CanvasItem:
    item_type = 'item'

    def __init__(self, item_id: Optional[str] = None):
        self.id = item_id or uuid.uuid4().hex

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'type': self.item_type}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'CanvasItem':
        """Factory: builds the right item subclass from its dictionary form."""
        item_type = data.get('type')
        if item_type == 'placeholder':
            return PlaceholderItem(data.get('color', PLACEHOLDER_COLORS[0]), item_id=data.get('id'))
        if item_type == 'image':
            return ImageItem(
                source_ref=data['source_ref'],
                natural_width=int(data['natural_width']),
                natural_height=int(data['natural_height']),
                name=data.get('name', ''),
                zoom=data.get('zoom', 1.0),
                offset_x=float(data.get('offset_x', 0.0)),
                offset_y=float(data.get('offset_y', 0.0)),
                item_id=data.get('id'),
            )
        raise ValueError(f"Unknown canvas item type: {item_type!r}")


class PlaceholderItem(CanvasItem):
    item_type = 'placeholder'

    def __init__(self, color: str, item_id: Optional[str] = None):
        super().__init__(item_id)
        self.color = color

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['color'] = self.color
        return data

    def __repr__(self):
        return f"PlaceholderItem(id={self.id!r}, color={self.color!r})"


class ImageItem(CanvasItem):
    item_type = 'image'

    def __init__(self, source_ref: str, natural_width: int, natural_height: int, name: str = '',
                 zoom: float = 1.0, offset_x: float = 0.0, offset_y: float = 0.0, item_id: Optional[str] = None):
        super().__init__(item_id)
        if natural_width <= 0 or natural_height <= 0:
            raise ValueError(f"Image '{source_ref}' has invalid size {natural_width}x{natural_height}")
        self.source_ref = source_ref
        self.natural_width = natural_width
        self.natural_height = natural_height
        self.name = name
        self._zoom = clamp_zoom(zoom)
        self.offset_x = offset_x
        self.offset_y = offset_y

    @property
    def zoom(self) -> float:
        return self._zoom

    @zoom.setter
    def zoom(self, value: float):
        # out-of-range zoom is clamped, never an error
        self._zoom = clamp_zoom(value)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            'source_ref': self.source_ref,
            'name': self.name,
            'natural_width': self.natural_width,
            'natural_height': self.natural_height,
            'zoom': self.zoom,
            'offset_x': self.offset_x,
            'offset_y': self.offset_y,
        })
        return data

    def __repr__(self):
        return (f"ImageItem(id={self.id!r}, source_ref={self.source_ref!r}, "
                f"size={self.natural_width}x{self.natural_height}, zoom={self.zoom}, "
                f"offset=({self.offset_x:.2f}, {self.offset_y:.2f}))")


@dataclass
class GalleryImage:
    """An image the user has loaded and may assign to a region."""
    source_ref: str
    width: int
    height: int
    name: str = ''


def make_placeholder(slot_index: int) -> PlaceholderItem:
    return PlaceholderItem(PLACEHOLDER_COLORS[slot_index % len(PLACEHOLDER_COLORS)])


# ─── Model ─────────────────────────────────────────────────────────────────────

class StitchModel:
    """
    Everything a render needs: canvas configuration, layout and the ordered
    item list (one item per region, same index).

    Mutations notify observers; observers re-render on demand.
    """

    def __init__(self, config: Optional[CanvasConfig] = None, layout: Optional[LayoutSpec] = None,
                 slot_count: Optional[int] = None):
        self.config = config or CanvasConfig()
        self.layout = layout or LayoutSpec()
        self.items: List[CanvasItem] = []
        self.gallery: List[GalleryImage] = []
        self.selected_gallery_index: Optional[int] = None

        # Observer callbacks
        self._observers: List[Callable[['StitchModel'], None]] = []

        self.set_slot_count(slot_count if slot_count is not None else DEFAULT_SLOTS[self.layout.mode], notify=False)

    # --- Observers ----------------------------------------------------------

    def add_observer(self, callback: Callable[['StitchModel'], None]):
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: Callable[['StitchModel'], None]):
        if callback in self._observers:
            self._observers.remove(callback)

    def notify_observers(self):
        for callback in list(self._observers):
            callback(self)

    # --- Slots --------------------------------------------------------------

    @property
    def slot_count(self) -> int:
        return len(self.items)

    def set_slot_count(self, count: int, notify: bool = True):
        """Appends placeholders or trims from the end until there are `count` items."""
        if count < 0:
            raise ConfigurationError(f"Slot count must be >= 0, got {count}")
        current = len(self.items)
        if count > current:
            self.items.extend(make_placeholder(i) for i in range(current, count))
        elif count < current:
            del self.items[count:]
        logger.debug("StitchModel.set_slot_count: %d -> %d", current, count)
        if notify:
            self.notify_observers()

    def reset_items(self):
        """Replaces every item with a fresh placeholder, keeping the slot count."""
        self.items = [make_placeholder(i) for i in range(len(self.items))]
        logger.info("StitchModel.reset_items: %d placeholders", len(self.items))
        self.notify_observers()

    # --- Layout -------------------------------------------------------------

    def set_mode(self, mode: str):
        if mode not in LAYOUT_MODES:
            raise ConfigurationError(f"Unknown layout mode: {mode!r} (expected one of {LAYOUT_MODES})")
        self.layout.mode = mode
        if self.slot_count not in SLOT_OPTIONS[mode]:
            self.set_slot_count(DEFAULT_SLOTS[mode], notify=False)
        logger.debug("StitchModel.set_mode: %s with %d slots", mode, self.slot_count)
        self.notify_observers()

    def set_stack_direction(self, direction: str):
        if direction not in STACK_DIRECTIONS:
            raise ConfigurationError(f"Unknown stack direction: {direction!r}")
        self.layout.stack_direction = direction
        self.notify_observers()

    def set_trio_pattern(self, pattern: str):
        if pattern not in TRIO_PATTERN_NAMES:
            raise ConfigurationError(f"Unknown trio pattern: {pattern!r}")
        self.layout.trio_pattern = pattern
        self.notify_observers()

    def set_canvas_size(self, width: int, height: int):
        validate_canvas(width, height)
        self.config.width = int(width)
        self.config.height = int(height)
        self.notify_observers()

    def set_separator_thickness(self, thickness: int):
        if thickness < 0:
            raise ConfigurationError(f"Separator thickness must be >= 0, got {thickness}")
        self.config.separator_thickness = int(thickness)
        self.notify_observers()

    def set_background_color(self, color: str):
        self.config.background_color = color
        self.notify_observers()

    def set_border(self, enabled: Optional[bool] = None, color: Optional[str] = None,
                   thickness: Optional[int] = None):
        """Updates the given border settings, leaving the others as they are."""
        if thickness is not None and thickness < 0:
            raise ConfigurationError(f"Border thickness must be >= 0, got {thickness}")
        if enabled is not None:
            self.config.border.enabled = bool(enabled)
        if color is not None:
            self.config.border.color = color
        if thickness is not None:
            self.config.border.thickness = int(thickness)
        self.notify_observers()

    def regions(self) -> List[Region]:
        self.config.validate()
        return self.layout.regions(self.slot_count, self.config.width, self.config.height)

    def validate(self):
        """Raises ConfigurationError if the model cannot be rendered as is."""
        self.regions()

    # --- Items --------------------------------------------------------------

    def add_to_gallery(self, image: GalleryImage) -> int:
        self.gallery.append(image)
        self.notify_observers()
        return len(self.gallery) - 1

    def clear_gallery(self):
        self.gallery = []
        self.selected_gallery_index = None
        self.notify_observers()

    def select_gallery_image(self, index: Optional[int]):
        if index is not None and not (0 <= index < len(self.gallery)):
            raise IndexError(f"Gallery index {index} out of range")
        self.selected_gallery_index = index
        self.notify_observers()

    @property
    def selected_gallery_image(self) -> Optional[GalleryImage]:
        if self.selected_gallery_index is None:
            return None
        if 0 <= self.selected_gallery_index < len(self.gallery):
            return self.gallery[self.selected_gallery_index]
        return None

    def assign_image(self, index: int, image: GalleryImage) -> ImageItem:
        """Promotes slot `index` to an image item; zoom and pan start from identity."""
        current = self.items[index]
        promoted = ImageItem(source_ref=image.source_ref, natural_width=image.width,
                             natural_height=image.height, name=image.name, item_id=current.id)
        self.items[index] = promoted
        logger.info("StitchModel.assign_image: slot %d <- %s", index, image.source_ref)
        self.notify_observers()
        return promoted

    def set_zoom(self, index: int, zoom: float):
        item = self.items[index]
        if not isinstance(item, ImageItem):
            logger.debug("StitchModel.set_zoom: slot %d is not an image, ignoring", index)
            return
        item.zoom = zoom
        self.notify_observers()

    def set_offset(self, index: int, offset_x: float, offset_y: float, notify: bool = True):
        item = self.items[index]
        if not isinstance(item, ImageItem):
            return
        item.offset_x = offset_x
        item.offset_y = offset_y
        if notify:
            self.notify_observers()

    def image_items(self) -> List[ImageItem]:
        return [item for item in self.items if isinstance(item, ImageItem)]

    # --- Serialisation ------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            'canvas': self.config.to_dict(),
            'layout': self.layout.to_dict(),
            'items': [item.to_dict() for item in self.items],
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> 'StitchModel':
        model = StitchModel(CanvasConfig.from_dict(data.get('canvas', {})),
                            LayoutSpec.from_dict(data.get('layout', {})), slot_count=0)
        model.layout.validate()
        items_data = data.get('items', [])
        if not isinstance(items_data, list):
            raise ValueError("'items' must be a list")
        model.items = [CanvasItem.from_dict(item_data) for item_data in items_data]
        if not model.items:
            model.set_slot_count(DEFAULT_SLOTS[model.layout.mode], notify=False)
        return model
