import pytest

from stitch.hit_test import DisplayMapping, layout_ownership, locate, ownership_map
from stitch.layout import compute_regions
from stitch.regions import RectRegion


def test_display_mapping_scales_and_offsets():
    display = DisplayMapping(1280, 720, 640, 360, origin_x=10, origin_y=20)
    assert display.scale_x == 2
    assert display.scale_y == 2
    assert display.to_canvas(330, 200) == (640, 360)
    assert display.contains(10, 20)
    assert not display.contains(9, 20)
    assert not display.contains(700, 100)


def test_identity_mapping():
    display = DisplayMapping.identity(300, 200)
    assert display.to_canvas(12.5, 7) == (12.5, 7)


def test_locate_outside_canvas_is_none():
    regions = compute_regions('stack', 2, 1280, 720)
    assert locate((-5, 10), regions) is None
    assert locate((100, 721), regions) is None


def test_shared_edge_goes_to_lower_index():
    regions = compute_regions('stack', 2, 1280, 720)
    assert locate((100, 360), regions) == 0
    assert locate((100, 360.01), regions) == 1


def test_rect_containment_is_inclusive():
    region = RectRegion(0, 10, 20, 100, 200)
    assert region.contains_point(10, 20)
    assert region.contains_point(110, 220)
    assert not region.contains_point(110.5, 220)


def test_polygon_containment_is_inclusive():
    regions = compute_regions('trio', 3, 1000, 1000, trio_pattern='y-down')
    # on the wedge edge from the top-left corner to the center
    assert regions[0].contains_point(250, 250)
    assert regions[1].contains_point(250, 250)
    assert locate((250, 250), regions) == 0


@pytest.mark.parametrize('mode,count,pattern', [
    ('stack', 3, 'y-down'),
    ('grid', 9, 'y-down'),
    ('trio', 3, 'y-down'),
    ('trio', 3, 'y-up'),
    ('trio', 3, 't-left'),
    ('trio', 3, 't-right'),
])
def test_ownership_map_agrees_with_locate(mode, count, pattern):
    width, height = 40, 30
    regions = compute_regions(mode, count, width, height, trio_pattern=pattern)
    owners = ownership_map(regions, width, height)
    assert owners.shape == (height, width)
    for py in range(height):
        for px in range(width):
            assert owners[py, px] == locate((px + 0.5, py + 0.5), regions)


def test_ownership_map_marks_unclaimed_pixels():
    regions = [RectRegion(0, 0, 0, 5, 10)]
    owners = ownership_map(regions, 10, 10)
    assert (owners[:, :5] == 0).all()
    assert (owners[:, 5:] == -1).all()


def test_layout_ownership_is_shared_between_renders():
    owners = layout_ownership('grid', 4, 50, 50)
    assert layout_ownership('grid', 4, 50, 50) is owners
    assert not owners.flags.writeable
    assert (owners == ownership_map(compute_regions('grid', 4, 50, 50), 50, 50)).all()
    assert layout_ownership('grid', 4, 50, 60) is not owners
