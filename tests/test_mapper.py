import itertools
import math

import pytest

from stitch.mapper import SourceCrop, clamp_offset, clamp_zoom, cover_crop, max_offsets, source_scale

DESTS = [(200, 200), (1280, 360), (100, 700), (33.3, 17.9)]
SOURCES = [(400, 300), (300, 400), (1920, 1080), (50, 50)]
ZOOMS = [0.1, 0.5, 1.0, 1.7, 10.0]
OFFSETS = [(0, 0), (1e6, -1e6), (-37.5, 12.25)]


def test_landscape_source_into_square_destination():
    crop = cover_crop(200, 200, 400, 300, zoom=1.0, offset_x=0, offset_y=0)
    assert crop == SourceCrop(50, 0, 300, 300)
    assert crop.box == (50, 0, 350, 300)


def test_portrait_source_into_wide_destination():
    crop = cover_crop(400, 100, 300, 600)
    # full source width, height trimmed to 4:1 and centered
    assert crop.width == pytest.approx(300)
    assert crop.height == pytest.approx(75)
    assert crop.sy == pytest.approx((600 - 75) / 2)


def test_zoom_in_shrinks_crop_around_center():
    crop = cover_crop(200, 200, 400, 300, zoom=2.0)
    assert crop == SourceCrop(125, 75, 150, 150)


def test_zoom_out_grows_the_crop_past_the_source():
    crop = cover_crop(200, 200, 400, 300, zoom=0.5)
    assert crop == SourceCrop(-100, -150, 600, 600)
    box, fractions = crop.visible(400, 300)
    assert box == (0, 0, 400, 300)
    assert fractions == pytest.approx((1 / 6, 0.25, 5 / 6, 0.75))


def test_zoom_out_on_one_axis_still_pans_the_other():
    # 375x375 crop: wider than tall source, narrower than its width
    crop = cover_crop(200, 200, 400, 300, zoom=0.8, offset_x=-100, offset_y=40)
    assert crop.width == pytest.approx(375)
    assert crop.sx == pytest.approx(0)
    assert crop.sy == pytest.approx(-37.5)


def test_visible_part_of_a_fitting_crop_is_the_whole_crop():
    crop = cover_crop(200, 200, 400, 300)
    assert crop.visible(400, 300) == ((50, 0, 350, 300), (0, 0, 1, 1))


@pytest.mark.parametrize('dest,src,zoom,offset', list(itertools.product(DESTS, SOURCES, ZOOMS, OFFSETS)))
def test_crop_keeps_aspect_ratio_and_samples_inside(dest, src, zoom, offset):
    dest_w, dest_h = dest
    src_w, src_h = src
    crop = cover_crop(dest_w, dest_h, src_w, src_h, zoom, *offset)
    assert crop.width / crop.height == pytest.approx(dest_w / dest_h)
    (left, top, right, bottom), fractions = crop.visible(src_w, src_h)
    assert 0 <= left < right <= src_w
    assert 0 <= top < bottom <= src_h
    assert all(-1e-9 <= f <= 1 + 1e-9 for f in fractions)
    if zoom >= 1:
        assert crop.sx >= 0 and crop.sy >= 0
        assert crop.sx + crop.width <= src_w + 1e-9
        assert crop.sy + crop.height <= src_h + 1e-9


@pytest.mark.parametrize('dest,src,zoom,offset', list(itertools.product(DESTS, SOURCES, ZOOMS, OFFSETS)))
def test_offset_clamping_is_idempotent(dest, src, zoom, offset):
    once = clamp_offset(offset[0], offset[1], *dest, *src, zoom)
    twice = clamp_offset(once[0], once[1], *dest, *src, zoom)
    assert once == twice


def test_offset_is_clamped_to_half_the_spare_source():
    assert clamp_offset(-500, 40, 200, 200, 400, 300) == (-50, 0)
    assert clamp_offset(20, 0, 200, 200, 400, 300) == (20, 0)
    assert max_offsets(400, 300, 300, 300) == (50, 0)


def test_offset_moves_the_crop():
    crop = cover_crop(200, 200, 400, 300, offset_x=-50)
    assert crop.sx == 0


@pytest.mark.parametrize('value,expected', [
    (0.01, 0.1),
    (0.1, 0.1),
    (3.3, 3.3),
    (25, 10.0),
    (None, 1.0),
    (math.nan, 1.0),
])
def test_clamp_zoom(value, expected):
    assert clamp_zoom(value) == pytest.approx(expected)


def test_source_scale():
    assert source_scale(200, 200, 400, 300) == (1.5, 1.5)
    assert source_scale(300, 300, 400, 300) == (1.0, 1.0)


@pytest.mark.parametrize('dims', [(0, 10, 10, 10), (10, 10, -1, 10), (10, 10, 10, 0)])
def test_non_positive_sizes_raise(dims):
    with pytest.raises(ValueError):
        cover_crop(*dims)
