# app.py

import argparse
import json
import logging
import math
import sys
from typing import List, Optional

from stitch.constants import (DEFAULT_BACKGROUND, DEFAULT_BORDER_COLOR, DEFAULT_BORDER_THICKNESS, DEFAULT_SEPARATOR,
                              LAYOUT_MODES, STACK_DIRECTIONS, TRIO_PATTERN_NAMES, presets_for_mode)
from stitch.compositor import export
from stitch.controller import EditorController
from stitch.image_cache import ImageCache, read_gallery_image
from stitch.layout import ConfigurationError
from stitch.model import BorderConfig, CanvasConfig, GalleryImage, LayoutSpec, StitchModel
from stitch.utils.geometry import parse_canvas_size, parse_color

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='stitch', description='Stitch several images into one canvas')
    parser.add_argument('images', nargs='*', help='Image files, assigned to slots in order')
    parser.add_argument('-m', '--mode', choices=LAYOUT_MODES, default='stack', help='Partition layout')
    parser.add_argument('-d', '--direction', choices=STACK_DIRECTIONS, default='vertical',
                        help='Stack direction (stack mode)')
    parser.add_argument('-p', '--pattern', choices=TRIO_PATTERN_NAMES, default='y-down',
                        help='Wedge pattern (trio mode)')
    parser.add_argument('-n', '--slots', type=int, help='Number of slots (default: fit the images)')
    parser.add_argument('-s', '--size', help='Canvas size as WxH or a preset name (480p, 720p, 1080p, 4K)')
    parser.add_argument('--background', default=DEFAULT_BACKGROUND, type=parse_color, help='Background / separator color')
    parser.add_argument('--separator', type=int, default=DEFAULT_SEPARATOR, help='Separator thickness in pixels')
    parser.add_argument('--border', action='store_true', help='Draw a border around the canvas')
    parser.add_argument('--border-color', default=DEFAULT_BORDER_COLOR, type=parse_color)
    parser.add_argument('--border-thickness', type=int, default=DEFAULT_BORDER_THICKNESS)
    parser.add_argument('-l', '--layout', dest='layout_path', metavar='FILE.json', help='Load a saved layout')
    parser.add_argument('--save-layout', metavar='FILE.json', help='Write the layout to a JSON file')
    parser.add_argument('-e', '--export', dest='export_path', metavar='OUT.png|OUT.pdf',
                        help='Render to a file and exit without opening the editor')
    parser.add_argument('--debug', action='store_true', help='Verbose logging')
    parser.add_argument('--log-file', help='Also write log output to this file')
    return parser


def configure_logging(debug: bool = False, log_file: Optional[str] = None):
    logging.basicConfig(level=logging.DEBUG if debug else logging.WARNING,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    if log_file:
        fh = logging.FileHandler(log_file)
        fh.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(message)s'))
        logging.getLogger().addHandler(fh)


def default_slot_count(mode: str, image_count: int) -> int:
    if mode == 'trio':
        return 3
    if mode == 'grid':
        cols = max(2, math.isqrt(max(image_count - 1, 0)) + 1)
        return cols * cols
    return max(2, image_count)


def read_gallery_images(paths: List[str]) -> List[GalleryImage]:
    gallery = []
    for path in paths:
        try:
            gallery.append(read_gallery_image(path))
        except OSError as e:
            logger.warning("read_gallery_images: skipping %s: %s", path, e)
            print(f"stitch: cannot read image '{path}': {e}", file=sys.stderr)
    return gallery


def build_model(args, gallery: List[GalleryImage]) -> StitchModel:
    if args.layout_path:
        with open(args.layout_path, 'r', encoding='utf-8') as f:
            return StitchModel.from_dict(json.load(f))

    if args.size:
        width, height = parse_canvas_size(args.size, args.mode)
    else:
        width, height = presets_for_mode(args.mode)['720p']
    config = CanvasConfig(width=width, height=height, background_color=args.background,
                          separator_thickness=args.separator,
                          border=BorderConfig(args.border, args.border_color, args.border_thickness))
    layout = LayoutSpec(args.mode, args.direction, args.pattern)
    slots = args.slots if args.slots is not None else default_slot_count(args.mode, len(gallery))
    return StitchModel(config, layout, slot_count=slots)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.debug, args.log_file)

    gallery = read_gallery_images(args.images)
    try:
        model = build_model(args, gallery)
        model.validate()
    except ConfigurationError as e:
        print(f"stitch: {e}", file=sys.stderr)
        return 2
    except (ValueError, KeyError) as e:
        parser.error(str(e))
    except OSError as e:
        print(f"stitch: cannot read layout: {e}", file=sys.stderr)
        return 1

    with ImageCache() as cache:
        controller = EditorController(model, cache)
        controller.add_images(gallery)
        if not args.layout_path:
            controller.fill_slots(gallery)
        for item in model.image_items():
            cache.request(item.source_ref)

        if args.save_layout:
            with open(args.save_layout, 'w', encoding='utf-8') as f:
                json.dump(model.to_dict(), f, indent=2)
            logger.info("main: layout saved to %s", args.save_layout)

        if args.export_path:
            cache.wait()
            try:
                path = export(model, args.export_path, cache)
            except ValueError as e:
                print(f"stitch: {e}", file=sys.stderr)
                return 2
            print(f"Exported {model.config.width}x{model.config.height} canvas to {path}")
            return 0

        from stitch.view import run_editor
        run_editor(controller, cache)
    return 0


if __name__ == '__main__':
    sys.exit(main())
