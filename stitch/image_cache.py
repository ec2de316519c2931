"""Decoded-image cache keyed by source reference.

Each source is decoded at most once on a background thread. Until the
decode resolves the entry is `pending`; afterwards it is `ready` (with a
Pillow image) or `failed`. Failures are remembered and never retried.
Listeners are called from the decode thread once an entry resolves.
"""
import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, List, Optional

from PIL import Image

from stitch.model import GalleryImage

logger = logging.getLogger(__name__)

PENDING = 'pending'
READY = 'ready'
FAILED = 'failed'


class ImageEntry:
    def __init__(self, state: str = PENDING, image: Optional[Image.Image] = None, error: Optional[str] = None):
        self.state = state
        self.image = image
        self.error = error

    @property
    def ready(self) -> bool:
        return self.state == READY and self.image is not None

    def __repr__(self):
        size = self.image.size if self.image is not None else None
        return f"ImageEntry(state={self.state!r}, size={size}, error={self.error!r})"


def decode_file(source_ref: str) -> Image.Image:
    with Image.open(source_ref) as im:
        im.load()
        return im.convert('RGBA')


def read_gallery_image(path: str) -> GalleryImage:
    """Reads just the header of an image file to learn its natural size."""
    with Image.open(path) as im:
        width, height = im.size
    return GalleryImage(source_ref=path, width=width, height=height, name=os.path.basename(path))


class ImageCache:
    def __init__(self, max_workers: int = 4, loader: Callable[[str], Image.Image] = decode_file):
        self._entries: Dict[str, ImageEntry] = {}
        self._futures: Dict[str, Future] = {}
        self._listeners: List[Callable[[str, ImageEntry], None]] = []
        self._lock = threading.Lock()
        self._loader = loader
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='stitch-decode')

    # --- Lookup -------------------------------------------------------------

    def get(self, source_ref: str) -> Optional[ImageEntry]:
        with self._lock:
            return self._entries.get(source_ref)

    def __contains__(self, source_ref: str) -> bool:
        with self._lock:
            return source_ref in self._entries

    def __len__(self):
        with self._lock:
            return len(self._entries)

    # --- Loading ------------------------------------------------------------

    def add_listener(self, callback: Callable[[str, ImageEntry], None]):
        self._listeners.append(callback)

    def request(self, source_ref: str) -> ImageEntry:
        """Starts decoding `source_ref` unless it is already known."""
        with self._lock:
            entry = self._entries.get(source_ref)
            if entry is not None:
                return entry
            entry = ImageEntry(PENDING)
            self._entries[source_ref] = entry
            self._futures[source_ref] = self._executor.submit(self._decode, source_ref)
        logger.debug("ImageCache.request: queued %s", source_ref)
        return entry

    def put(self, source_ref: str, image: Image.Image) -> ImageEntry:
        """Registers an already decoded image."""
        entry = ImageEntry(READY, image.convert('RGBA'))
        with self._lock:
            self._entries[source_ref] = entry
        self._notify(source_ref, entry)
        return entry

    def _decode(self, source_ref: str):
        try:
            image = self._loader(source_ref)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            logger.warning("ImageCache._decode: could not decode %s: %s", source_ref, e)
            entry = ImageEntry(FAILED, error=str(e))
        except Exception as e:
            # a decode failure never leaves the entry pending
            logger.exception("ImageCache._decode: unexpected error decoding %s", source_ref)
            entry = ImageEntry(FAILED, error=str(e) or type(e).__name__)
        else:
            logger.debug("ImageCache._decode: %s decoded at %sx%s", source_ref, *image.size)
            entry = ImageEntry(READY, image)
        with self._lock:
            self._entries[source_ref] = entry
        self._notify(source_ref, entry)

    def _notify(self, source_ref: str, entry: ImageEntry):
        for callback in list(self._listeners):
            callback(source_ref, entry)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Blocks until every queued decode has resolved. Returns False on timeout."""
        with self._lock:
            futures = list(self._futures.values())
        _, not_done = wait(futures, timeout=timeout)
        return not not_done

    def close(self):
        self._executor.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
