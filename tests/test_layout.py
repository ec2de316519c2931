import pytest

from stitch.hit_test import locate, ownership_map
from stitch.layout import ConfigurationError, compute_regions, separator_segments, validate_item_count
from stitch.regions import PolygonRegion, RectRegion

VALID_LAYOUTS = [
    ('stack', 2, 'vertical', 'y-down'),
    ('stack', 5, 'vertical', 'y-down'),
    ('stack', 3, 'horizontal', 'y-down'),
    ('grid', 1, 'vertical', 'y-down'),
    ('grid', 4, 'vertical', 'y-down'),
    ('grid', 9, 'vertical', 'y-down'),
    ('grid', 16, 'vertical', 'y-down'),
    ('trio', 3, 'vertical', 'y-down'),
    ('trio', 3, 'vertical', 'y-up'),
    ('trio', 3, 'vertical', 't-left'),
    ('trio', 3, 'vertical', 't-right'),
]


def test_stack_vertical_two_items():
    regions = compute_regions('stack', 2, 1280, 720)
    assert regions == [RectRegion(0, 0, 0, 1280, 360), RectRegion(1, 0, 360, 1280, 360)]


def test_stack_horizontal_splits_width():
    regions = compute_regions('stack', 4, 1000, 300, stack_direction='horizontal')
    assert [r.draw_box for r in regions] == [(0, 0, 250, 300), (250, 0, 250, 300),
                                             (500, 0, 250, 300), (750, 0, 250, 300)]


def test_grid_nine_items():
    regions = compute_regions('grid', 9, 1080, 1080)
    assert len(regions) == 9
    assert all((r.w, r.h) == (360, 360) for r in regions)
    assert regions[4] == RectRegion(4, 360, 360, 360, 360)


def test_grid_is_row_major():
    regions = compute_regions('grid', 4, 200, 100)
    assert [(r.x, r.y) for r in regions] == [(0, 0), (100, 0), (0, 50), (100, 50)]


def test_trio_y_down():
    regions = compute_regions('trio', 3, 1000, 1000, trio_pattern='y-down')
    assert all(isinstance(r, PolygonRegion) for r in regions)
    assert regions[0].vertices == [(0, 0), (1000, 0), (500, 500)]
    assert locate((500, 100), regions) == 0


def test_trio_regions_draw_into_whole_canvas():
    regions = compute_regions('trio', 3, 640, 480, trio_pattern='t-left')
    assert all(r.draw_box == (0, 0, 640, 480) for r in regions)


@pytest.mark.parametrize('mode,count,direction,pattern', VALID_LAYOUTS)
def test_regions_tile_the_canvas(mode, count, direction, pattern):
    width, height = 97, 61
    regions = compute_regions(mode, count, width, height, direction, pattern)
    assert len(regions) == count
    assert [r.index for r in regions] == list(range(count))
    # areas add up to the canvas: no gaps, no overlaps
    assert sum(r.area for r in regions) == pytest.approx(width * height)
    assert (ownership_map(regions, width, height) >= 0).all()


@pytest.mark.parametrize('mode,count,direction,pattern', VALID_LAYOUTS)
def test_centroid_hits_its_own_region(mode, count, direction, pattern):
    regions = compute_regions(mode, count, 800, 600, direction, pattern)
    for region in regions:
        assert locate(region.centroid, regions) == region.index


@pytest.mark.parametrize('pattern', ['y-down', 'y-up', 't-left', 't-right'])
def test_trio_wedges_do_not_overlap(pattern):
    regions = compute_regions('trio', 3, 300, 200, trio_pattern=pattern)
    for region in regions:
        for other in regions:
            if other is region:
                continue
            cx, cy = region.centroid
            assert not other.contains_point(cx, cy)


@pytest.mark.parametrize('mode,count', [
    ('grid', 5),
    ('grid', 8),
    ('grid', 0),
    ('trio', 2),
    ('trio', 4),
    ('stack', 1),
    ('mosaic', 4),
])
def test_invalid_item_count_is_rejected(mode, count):
    with pytest.raises(ConfigurationError):
        validate_item_count(mode, count)
    with pytest.raises(ConfigurationError):
        compute_regions(mode, count, 100, 100)


@pytest.mark.parametrize('width,height', [(0, 100), (100, 0), (-5, 20)])
def test_degenerate_canvas_is_rejected(width, height):
    with pytest.raises(ConfigurationError):
        compute_regions('stack', 2, width, height)


def test_unknown_pattern_and_direction():
    with pytest.raises(ConfigurationError):
        compute_regions('trio', 3, 100, 100, trio_pattern='x-wing')
    with pytest.raises(ConfigurationError):
        compute_regions('stack', 2, 100, 100, stack_direction='diagonal')


def test_configuration_error_is_a_value_error():
    assert issubclass(ConfigurationError, ValueError)


def test_stack_separators():
    segments = separator_segments('stack', 3, 400, 900)
    assert segments == [((0, 300), (400, 300)), ((0, 600), (400, 600))]


def test_grid_separators():
    segments = separator_segments('grid', 9, 90, 90)
    assert len(segments) == 4
    assert ((30, 0), (30, 90)) in segments
    assert ((0, 60), (90, 60)) in segments


def test_trio_separators_are_spokes_from_center():
    segments = separator_segments('trio', 3, 1000, 1000, trio_pattern='y-down')
    assert segments == [((500, 500), (0, 0)), ((500, 500), (1000, 0)), ((500, 500), (500, 1000))]


def test_polygon_needs_three_vertices():
    with pytest.raises(ValueError):
        PolygonRegion(0, [(0, 0), (1, 1)], (0, 0, 1, 1))
