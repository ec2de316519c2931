import json

import pytest
from PIL import Image

from stitch.app import build_parser, default_slot_count, main
from stitch.constants import DEFAULT_BACKGROUND
from stitch.utils.geometry import parse_canvas_size, parse_color


@pytest.mark.parametrize('mode,count,expected', [
    ('stack', 0, 2),
    ('stack', 4, 4),
    ('grid', 0, 4),
    ('grid', 4, 4),
    ('grid', 5, 9),
    ('grid', 10, 16),
    ('trio', 7, 3),
])
def test_default_slot_count(mode, count, expected):
    assert default_slot_count(mode, count) == expected


@pytest.mark.parametrize('value,mode,expected', [
    ('1280x720', 'stack', (1280, 720)),
    ('800 X 600', 'stack', (800, 600)),
    ('1920,1080', 'grid', (1920, 1080)),
    ('720p', 'stack', (1280, 720)),
    ('720p', 'grid', (720, 720)),
    ('4k', 'trio', (2160, 2160)),
])
def test_parse_canvas_size(value, mode, expected):
    assert parse_canvas_size(value, mode) == expected


@pytest.mark.parametrize('value', ['huge', '0x100', '100x', ''])
def test_parse_canvas_size_rejects(value):
    with pytest.raises(ValueError):
        parse_canvas_size(value)


def test_parse_color():
    assert parse_color(' #fff ') == '#fff'
    with pytest.raises(ValueError):
        parse_color('not-a-color')


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert (args.mode, args.direction, args.pattern) == ('stack', 'vertical', 'y-down')
    assert args.export_path is None
    assert args.background == DEFAULT_BACKGROUND


def test_headless_png_export(make_image_file, tmp_path, capsys):
    red = make_image_file('red.png', (40, 30), 'red')
    blue = make_image_file('blue.png', (30, 40), 'blue')
    out = tmp_path / 'out.png'

    code = main([red.source_ref, blue.source_ref, '--size', '200x100', '--direction', 'horizontal',
                 '--separator', '0', '--export', str(out)])

    assert code == 0
    assert 'out.png' in capsys.readouterr().out
    with Image.open(out) as im:
        im = im.convert('RGBA')
        assert im.size == (200, 100)
        assert im.getpixel((50, 50)) == (255, 0, 0, 255)
        assert im.getpixel((150, 50)) == (0, 0, 255, 255)


def test_headless_pdf_export(make_image_file, tmp_path):
    image = make_image_file('green.png', (16, 16), 'green')
    out = tmp_path / 'out.pdf'
    assert main([image.source_ref, '--mode', 'trio', '--size', '480p', '--export', str(out)]) == 0
    assert out.read_bytes().startswith(b'%PDF')


def test_unreadable_image_is_skipped(make_image_file, tmp_path, capsys):
    image = make_image_file('ok.png', (10, 10), 'white')
    out = tmp_path / 'out.png'
    assert main([image.source_ref, str(tmp_path / 'missing.png'), '--export', str(out)]) == 0
    assert 'missing.png' in capsys.readouterr().err
    assert out.exists()


def test_non_square_grid_count_exits_with_2(tmp_path, capsys):
    code = main(['--mode', 'grid', '--slots', '5', '--export', str(tmp_path / 'out.png')])
    assert code == 2
    assert 'perfect-square' in capsys.readouterr().err
    assert not (tmp_path / 'out.png').exists()


def test_bad_size_is_a_usage_error(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main(['--size', 'enormous', '--export', str(tmp_path / 'out.png')])
    assert excinfo.value.code == 2


def test_unsupported_export_format(tmp_path):
    assert main(['--export', str(tmp_path / 'out.bmp')]) == 2


def test_layout_round_trip(make_image_file, tmp_path):
    image = make_image_file('red.png', (50, 50), 'red')
    layout_path = tmp_path / 'layout.json'
    first = tmp_path / 'first.png'
    second = tmp_path / 'second.png'

    assert main([image.source_ref, '--mode', 'grid', '--size', '100x100', '--save-layout', str(layout_path),
                 '--export', str(first)]) == 0
    saved = json.loads(layout_path.read_text())
    assert saved['layout']['mode'] == 'grid'
    assert len(saved['items']) == 4
    assert saved['items'][0]['type'] == 'image'

    assert main(['--layout', str(layout_path), '--export', str(second)]) == 0
    with Image.open(first) as a, Image.open(second) as b:
        assert list(a.getdata()) == list(b.getdata())


def test_missing_layout_file(tmp_path):
    assert main(['--layout', str(tmp_path / 'nope.json'), '--export', str(tmp_path / 'out.png')]) == 1
