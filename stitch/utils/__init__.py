# utils/__init__.py

from .geometry import parse_canvas_size, parse_color, points_in_polygon, points_in_rect, polygon_area, polygon_centroid

__all__ = ['parse_canvas_size', 'parse_color', 'points_in_polygon', 'points_in_rect', 'polygon_area', 'polygon_centroid']
