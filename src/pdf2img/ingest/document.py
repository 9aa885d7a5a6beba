"""Ingest stage — input files, document parsing, and page lookup.

Centralises file reading and PDF opening so the rasterizer and the pipeline
never call ``pdfplumber.open()`` directly.

Public API
----------
- :class:`PdfFile` — file-like input (name + bytes or path)
- :func:`open_document` — parse bytes into a :class:`Document`
- :class:`Document` — parsed PDF with page count and 1-based page lookup
- :class:`Page` — one page with native size and render hook
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Protocol

from ..errors import DocumentLoadError, FileReadError, PageAccessError, RenderError
from ..render.rasterize import Viewport

if TYPE_CHECKING:
    from PIL import Image

    from ..engine import Engine
    from ..render.surface import DrawContext

log = logging.getLogger(__name__)

# PDF user space: 72 points per inch.
POINTS_PER_INCH = 72.0


class FileLike(Protocol):
    """Anything with a name and asynchronously readable bytes."""

    name: str

    async def read_bytes(self) -> Optional[bytes]: ...


# ---------------------------------------------------------------------------
# Input files
# ---------------------------------------------------------------------------


def _validate_file_path(path: Path) -> None:
    """Raise :class:`FileReadError` for missing / non-file / empty paths."""
    if not path.exists():
        raise FileReadError(f"File not found: {path}")
    if not path.is_file():
        raise FileReadError(f"Not a file: {path}")
    if path.stat().st_size == 0:
        raise FileReadError(f"Empty file: {path}")


@dataclass
class PdfFile:
    """A user-supplied document, held in memory or backed by a path."""

    name: str
    data: Optional[bytes] = None
    path: Optional[Path] = None

    @classmethod
    def from_path(cls, path: Path | str) -> "PdfFile":
        """Build a :class:`PdfFile` for *path*, validating it first."""
        path = Path(path)
        _validate_file_path(path)
        return cls(name=path.name, path=path)

    async def read_bytes(self) -> Optional[bytes]:
        if self.data is not None:
            return self.data
        if self.path is None:
            return None
        try:
            return self.path.read_bytes()
        except OSError as exc:
            raise FileReadError(f"Cannot read {self.path}: {exc}") from exc


# ---------------------------------------------------------------------------
# Document / page handles
# ---------------------------------------------------------------------------


@dataclass
class Page:
    """One page of a :class:`Document`; dimensions are in PDF points."""

    number: int  # one-based
    width: float
    height: float
    handle: Any = field(repr=False, default=None)

    def get_viewport(self, scale: float) -> Viewport:
        return Viewport(
            width=self.width * scale, height=self.height * scale, scale=scale
        )

    def _rasterize(self, viewport: Viewport, antialias: bool) -> "Image.Image":
        img_page = self.handle.to_image(
            resolution=POINTS_PER_INCH * viewport.scale, antialias=antialias
        )
        img = img_page.original.copy()
        # pdfplumber may hand back RGBA or palette images
        if img.mode != "RGB":
            img = img.convert("RGB")
        return img

    async def render(
        self, engine: "Engine", context: "DrawContext", viewport: Viewport
    ) -> None:
        """Render this page through *context* at *viewport*'s scale.

        Raises
        ------
        RenderError
            When the engine fails to rasterize the page.
        """
        try:
            img = await engine.run(
                self._rasterize, viewport, context.image_smoothing_enabled
            )
        except Exception as exc:
            raise RenderError(str(exc)) from exc
        context.draw_image(img)


@dataclass
class Document:
    """A parsed PDF.  Call-local; close it when the conversion finishes."""

    num_pages: int
    handle: Any = field(repr=False, default=None)

    def _lookup(self, number: int) -> Page:
        pg = self.handle.pages[number - 1]
        return Page(
            number=number, width=float(pg.width), height=float(pg.height), handle=pg
        )

    async def get_page(self, engine: "Engine", number: int) -> Page:
        """Return page *number* (one-based).

        Raises
        ------
        PageAccessError
            When the page does not exist or cannot be read.
        """
        if not 1 <= number <= self.num_pages:
            raise PageAccessError(
                f"page {number} out of range (document has {self.num_pages})"
            )
        try:
            page = await engine.run(self._lookup, number)
        except Exception as exc:
            raise PageAccessError(f"page {number}: {exc}") from exc
        if page is None:
            raise PageAccessError(f"page {number}: engine returned no page")
        return page

    def close(self) -> None:
        if self.handle is not None and hasattr(self.handle, "close"):
            self.handle.close()

    def __enter__(self) -> "Document":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _open_sync(lib: Any, data: bytes) -> Document:
    pdf = lib.open(io.BytesIO(data))
    if pdf is None:
        raise DocumentLoadError("engine returned no document")
    try:
        num_pages = len(pdf.pages)
    except BaseException:
        pdf.close()
        raise
    return Document(num_pages=num_pages, handle=pdf)


async def open_document(engine: "Engine", data: bytes) -> Document:
    """Parse *data* into a :class:`Document` on the engine worker.

    Raises
    ------
    DocumentLoadError
        When the bytes are not a readable PDF or the PDF has no pages.
    """
    try:
        doc = await engine.run(_open_sync, engine.lib, data)
    except DocumentLoadError:
        raise
    except Exception as exc:
        raise DocumentLoadError(f"Cannot open PDF: {exc}") from exc
    if not doc.num_pages:
        doc.close()
        raise DocumentLoadError("PDF reports no pages")
    log.debug("Opened PDF: %d pages, %.1f KB", doc.num_pages, len(data) / 1024)
    return doc
