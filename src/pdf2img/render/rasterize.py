"""Rasterize the first page of a document onto a pixel surface."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Tuple

from ..errors import ContextAcquisitionError
from .surface import PixelSurface, SurfaceProvider

if TYPE_CHECKING:
    from ..engine import Engine
    from ..ingest.document import Document

log = logging.getLogger(__name__)

# Zoom applied to the page's native size (2x = 144 DPI).
RENDER_SCALE = 2.0
FIRST_PAGE = 1


@dataclass(frozen=True)
class Viewport:
    """Page size in pixels at a given zoom factor."""

    width: float
    height: float
    scale: float

    @property
    def pixel_size(self) -> Tuple[int, int]:
        """Integer surface size; fractional pixels are dropped."""
        return int(self.width), int(self.height)


async def rasterize_first_page(
    engine: "Engine",
    doc: "Document",
    surfaces: Optional[SurfaceProvider] = None,
) -> Tuple[PixelSurface, int, int]:
    """Render page 1 of *doc* at :data:`RENDER_SCALE`.

    Returns
    -------
    (surface, width, height)

    Raises
    ------
    PageAccessError
        When the first page cannot be obtained.
    ContextAcquisitionError
        When the surface does not provide a 2D context.
    RenderError
        When the engine fails to draw the page.
    """
    if surfaces is None:
        surfaces = SurfaceProvider()
    page = await doc.get_page(engine, FIRST_PAGE)

    viewport = page.get_viewport(RENDER_SCALE)
    width, height = viewport.pixel_size
    surface = surfaces.create(width, height)

    context = surface.get_context()
    if context is None:
        raise ContextAcquisitionError(f"surface {width}x{height} has no 2D context")

    context.image_smoothing_enabled = True
    context.image_smoothing_quality = "high"
    context.clear()

    await page.render(engine, context, viewport)
    log.debug(
        "Rendered page %d (%.1fx%.1f pt) to %dx%d px",
        page.number,
        page.width,
        page.height,
        width,
        height,
    )
    return surface, width, height
