# ─── Constants ──────────────────────────────────────────────────────────────────
LAYOUT_MODES = ['stack', 'grid', 'trio']
STACK_DIRECTIONS = ['vertical', 'horizontal']
TRIO_PATTERN_NAMES = ['y-down', 'y-up', 't-left', 't-right']

STACK_PRESETS = {
    '480p': (640, 480),
    '720p': (1280, 720),
    '1080p': (1920, 1080),
    '4K': (3840, 2160),
}
GRID_PRESETS = {
    '480p': (480, 480),
    '720p': (720, 720),
    '1080p': (1080, 1080),
    '4K': (2160, 2160),
}

SLOT_OPTIONS = {
    'stack': [2, 3, 4, 5],
    'grid': [4, 9, 16],
    'trio': [3],
}
DEFAULT_SLOTS = {'stack': 2, 'grid': 4, 'trio': 3}
GRID_LABELS = {4: '2x2', 9: '3x3', 16: '4x4'}

PLACEHOLDER_COLORS = ['#3b82f6', '#8b5cf6', '#f97316', '#2dd4bf', '#ec4899']
PENDING_FILL = (100, 100, 100, 128)  # loading / failed image

MIN_ZOOM = 0.1
MAX_ZOOM = 10.0
ZOOM_STEP = 0.1

CANVAS_WIDTH = 1280
CANVAS_HEIGHT = 720
DEFAULT_BACKGROUND = '#000000'
DEFAULT_SEPARATOR = 10
DEFAULT_BORDER_COLOR = '#000000'
DEFAULT_BORDER_THICKNESS = 4

EXPORT_FILENAME = 'stitch-image.png'
PANEL_WIDTH = 260
TOOLBAR_HEIGHT = 40


def presets_for_mode(mode: str) -> dict:
    return STACK_PRESETS if mode == 'stack' else GRID_PRESETS
