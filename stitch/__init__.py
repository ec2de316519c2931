from stitch.compositor import export, render, render_model
from stitch.controller import DragController, EditorController
from stitch.hit_test import DisplayMapping, locate, ownership_map
from stitch.layout import ConfigurationError, compute_regions, separator_segments
from stitch.mapper import SourceCrop, clamp_offset, cover_crop
from stitch.model import CanvasConfig, GalleryImage, ImageItem, LayoutSpec, PlaceholderItem, StitchModel

__all__ = [
    'CanvasConfig', 'ConfigurationError', 'DisplayMapping', 'DragController', 'EditorController', 'GalleryImage',
    'ImageItem', 'LayoutSpec', 'PlaceholderItem', 'SourceCrop', 'StitchModel', 'clamp_offset', 'compute_regions',
    'cover_crop', 'export', 'locate', 'ownership_map', 'render', 'render_model', 'separator_segments',
]
