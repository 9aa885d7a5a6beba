"""Pillow-backed drawing surfaces.

A :class:`PixelSurface` plays the role of a canvas: it is allocated at a fixed
pixel size, hands out a :class:`DrawContext` for drawing, and serializes its
pixels to PNG.
"""

from __future__ import annotations

import io
import logging
from typing import Optional

from PIL import Image, ImageDraw

log = logging.getLogger(__name__)

# Image modes a DrawContext can be acquired for.
_CONTEXT_MODES = ("RGB", "RGBA")

_RESAMPLING = {
    "low": Image.Resampling.BILINEAR,
    "medium": Image.Resampling.BICUBIC,
    "high": Image.Resampling.LANCZOS,
}


class DrawContext:
    """2D drawing context bound to one :class:`PixelSurface`."""

    def __init__(self, surface: "PixelSurface") -> None:
        self.surface = surface
        self.image_smoothing_enabled = False
        self.image_smoothing_quality = "low"
        self._draw = ImageDraw.Draw(surface.image)

    def clear(self, fill: str = "white") -> None:
        """Fill the whole surface with *fill*."""
        w, h = self.surface.size
        self._draw.rectangle([(0, 0), (w, h)], fill=fill)

    def draw_image(self, img: Image.Image) -> None:
        """Draw *img* at the origin, scaled to the surface size if needed."""
        if img.size != self.surface.size:
            if self.image_smoothing_enabled:
                resample = _RESAMPLING[self.image_smoothing_quality]
            else:
                resample = Image.Resampling.NEAREST
            img = img.resize(self.surface.size, resample=resample)
        if img.mode != self.surface.image.mode:
            img = img.convert(self.surface.image.mode)
        self.surface.image.paste(img, (0, 0))


class PixelSurface:
    """Mutable pixel buffer of a fixed size."""

    def __init__(self, image: Image.Image) -> None:
        self.image = image

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size

    def get_context(self) -> Optional[DrawContext]:
        """Return a 2D context, or ``None`` when the surface cannot draw."""
        if self.image.mode not in _CONTEXT_MODES:
            log.warning("No 2D context for surface mode %s", self.image.mode)
            return None
        return DrawContext(self)

    def to_png(self, quality: float = 1.0, compress_level: int = 6) -> Optional[bytes]:
        """Serialize the surface to PNG bytes.

        *quality* is accepted for parity with lossy encoders and must lie in
        (0, 1]; PNG output is lossless regardless.  Returns ``None`` for a
        surface with no pixels.
        """
        if not 0.0 < quality <= 1.0:
            raise ValueError(f"quality={quality} out of range (0, 1]")
        if self.width == 0 or self.height == 0:
            return None
        buf = io.BytesIO()
        self.image.save(buf, format="PNG", compress_level=compress_level)
        return buf.getvalue()


class SurfaceProvider:
    """Allocates blank surfaces for the rasterizer."""

    mode = "RGB"
    background = "white"

    def create(self, width: int, height: int) -> PixelSurface:
        return PixelSurface(Image.new(self.mode, (width, height), self.background))
