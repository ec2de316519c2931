import pytest
from PIL import Image

from stitch.model import GalleryImage


@pytest.fixture
def make_image_file(tmp_path):
    """Writes a solid-color PNG and returns its GalleryImage."""

    def _make(name, size, color):
        path = tmp_path / name
        Image.new('RGB', size, color).save(path)
        return GalleryImage(source_ref=str(path), width=size[0], height=size[1], name=name)

    return _make
