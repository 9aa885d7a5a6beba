"""Render stage — pixel surfaces and first-page rasterization.

Public API
----------
- :func:`rasterize_first_page` — render page 1 at the fixed 2x zoom
- :class:`Viewport` — page size in pixels at a zoom factor
- :class:`SurfaceProvider` / :class:`PixelSurface` / :class:`DrawContext`
"""

from .rasterize import FIRST_PAGE, RENDER_SCALE, Viewport, rasterize_first_page
from .surface import DrawContext, PixelSurface, SurfaceProvider

__all__ = [
    "FIRST_PAGE",
    "RENDER_SCALE",
    "DrawContext",
    "PixelSurface",
    "SurfaceProvider",
    "Viewport",
    "rasterize_first_page",
]
