"""Encode stage — PNG serialization and the output file artifact."""

from __future__ import annotations

import logging
import os
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Tuple

from ..errors import EncodingError
from .object_url import ObjectUrlRegistry, get_default_registry

if TYPE_CHECKING:
    from ..engine import Engine
    from ..render.surface import PixelSurface

log = logging.getLogger(__name__)

PNG_MIME_TYPE = "image/png"
# Maximum quality; PNG stays lossless at any setting.
PNG_QUALITY = 1.0

_PDF_SUFFIX_RE = re.compile(r"\.pdf$", re.IGNORECASE)
# Trailing characters that mark an output path as a directory.
_SEPARATORS = tuple(s for s in ("/", os.sep, os.altsep) if s)


def derive_image_name(original_name: str) -> str:
    """``"Report.PDF"`` -> ``"Report.png"``; ``"notes.txt"`` -> ``"notes.txt.png"``."""
    return _PDF_SUFFIX_RE.sub("", original_name) + ".png"


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class ImageFile:
    """A named, typed image payload produced by the pipeline."""

    name: str
    data: bytes = field(repr=False)
    type: str = PNG_MIME_TYPE
    last_modified: int = field(default_factory=_now_ms)

    @property
    def size(self) -> int:
        return len(self.data)

    async def read_bytes(self) -> bytes:
        return self.data

    def save(self, path: Path | str) -> Path:
        """Write the payload to *path*.

        An existing directory, or a string ending in a path separator, gets
        :attr:`name` appended; missing parent directories are created.
        """
        as_dir = isinstance(path, str) and path.endswith(_SEPARATORS)
        path = Path(path)
        if as_dir or path.is_dir():
            path = path / self.name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.data)
        return path


async def encode_to_png(
    engine: "Engine",
    surface: "PixelSurface",
    original_name: str,
    urls: Optional[ObjectUrlRegistry] = None,
    compress_level: int = 6,
) -> Tuple[str, ImageFile]:
    """Encode *surface* to PNG and publish it.

    The returned URL is registered in *urls* (the process-wide registry by
    default) and must be revoked by the caller once it is no longer needed.

    Raises
    ------
    EncodingError
        When serialization yields no bytes.
    """
    if urls is None:
        urls = get_default_registry()
    data = await engine.run(surface.to_png, PNG_QUALITY, compress_level)
    if not data:
        raise EncodingError(f"PNG encoder returned no data for {original_name!r}")

    image_file = ImageFile(name=derive_image_name(original_name), data=data)
    image_url = urls.create(data, PNG_MIME_TYPE)
    return image_url, image_file
