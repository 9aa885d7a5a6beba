"""Tests for pdf2img.render — surfaces, contexts, first-page rasterization."""

from __future__ import annotations

import asyncio

import pytest
from conftest import FakeLib, FakePage
from PIL import Image

from pdf2img.engine import Engine
from pdf2img.errors import ContextAcquisitionError, PageAccessError, RenderError
from pdf2img.ingest import Document
from pdf2img.render import (
    RENDER_SCALE,
    DrawContext,
    PixelSurface,
    SurfaceProvider,
    Viewport,
    rasterize_first_page,
)


def _doc(*pages: FakePage) -> Document:
    return Document(num_pages=len(pages), handle=FakeLib(pages=list(pages)).open(None))


class NoContextProvider(SurfaceProvider):
    mode = "L"


class RecordingProvider(SurfaceProvider):
    def __init__(self) -> None:
        self.created: list[tuple[int, int]] = []

    def create(self, width: int, height: int) -> PixelSurface:
        self.created.append((width, height))
        return super().create(width, height)


# ── Viewport / surfaces ───────────────────────────────────────────────


class TestViewport:
    def test_pixel_size_truncates(self):
        assert Viewport(width=401.7, height=199.2, scale=2.0).pixel_size == (401, 199)

    def test_render_scale_is_two(self):
        assert RENDER_SCALE == 2.0


class TestPixelSurface:
    def test_provider_allocates_white_rgb(self):
        s = SurfaceProvider().create(30, 20)
        assert s.size == (30, 20)
        assert s.image.mode == "RGB"
        assert s.image.getpixel((0, 0)) == (255, 255, 255)

    def test_context_unavailable_for_unsupported_mode(self):
        assert NoContextProvider().create(10, 10).get_context() is None

    def test_draw_image_scales_to_surface(self):
        s = SurfaceProvider().create(40, 20)
        ctx = s.get_context()
        ctx.image_smoothing_enabled = True
        ctx.image_smoothing_quality = "high"
        ctx.draw_image(Image.new("RGB", (41, 21), (255, 0, 0)))
        assert s.size == (40, 20)
        assert s.image.getpixel((20, 10)) == (255, 0, 0)

    def test_clear_fills_surface(self):
        s = SurfaceProvider().create(5, 5)
        ctx = s.get_context()
        ctx.draw_image(Image.new("RGB", (5, 5), (0, 0, 0)))
        ctx.clear()
        assert s.image.getpixel((4, 4)) == (255, 255, 255)

    def test_to_png_produces_png(self):
        data = SurfaceProvider().create(8, 8).to_png()
        assert data.startswith(b"\x89PNG\r\n\x1a\n")

    def test_to_png_empty_surface_yields_none(self):
        assert PixelSurface(Image.new("RGB", (0, 0))).to_png() is None

    @pytest.mark.parametrize("quality", [0.0, 1.5])
    def test_to_png_rejects_bad_quality(self, quality):
        with pytest.raises(ValueError, match="quality"):
            SurfaceProvider().create(2, 2).to_png(quality=quality)


# ── rasterize_first_page ──────────────────────────────────────────────


class TestRasterizeFirstPage:
    def test_renders_first_page_at_double_scale(self, worker):
        first, second = FakePage(200, 100), FakePage(50, 50)
        engine = Engine(lib=None, worker=worker)
        provider = RecordingProvider()

        surface, w, h = asyncio.run(
            rasterize_first_page(engine, _doc(first, second), provider)
        )

        assert (w, h) == (400, 200)
        assert provider.created == [(400, 200)]
        assert surface.size == (400, 200)
        assert surface.image.getpixel((10, 10)) == (0, 0, 255)
        assert first.render_calls == [{"resolution": 144.0, "antialias": True}]
        assert second.render_calls == []

    def test_fractional_viewport(self, worker):
        engine = Engine(lib=None, worker=worker)
        surface, w, h = asyncio.run(
            rasterize_first_page(engine, _doc(FakePage(100.4, 50.3)))
        )
        assert (w, h) == (200, 100)
        assert surface.size == (200, 100)

    def test_smoothing_enabled_before_render(self, worker):
        seen = []

        class SpyContext(DrawContext):
            def draw_image(self, img):
                seen.append((self.image_smoothing_enabled, self.image_smoothing_quality))
                super().draw_image(img)

        class SpySurface(PixelSurface):
            def get_context(self):
                return SpyContext(self)

        class SpyProvider(SurfaceProvider):
            def create(self, width, height):
                return SpySurface(Image.new("RGB", (width, height), "white"))

        engine = Engine(lib=None, worker=worker)
        asyncio.run(rasterize_first_page(engine, _doc(FakePage()), SpyProvider()))
        assert seen == [(True, "high")]

    def test_no_context(self, worker):
        engine = Engine(lib=None, worker=worker)
        with pytest.raises(ContextAcquisitionError) as info:
            asyncio.run(
                rasterize_first_page(engine, _doc(FakePage()), NoContextProvider())
            )
        assert info.value.user_message == "Failed to get 2D context from canvas"

    def test_render_failure(self, worker):
        page = FakePage()
        page.fail_render = RuntimeError("pdfium: bad content stream")
        engine = Engine(lib=None, worker=worker)
        with pytest.raises(RenderError, match="bad content stream"):
            asyncio.run(rasterize_first_page(engine, _doc(page)))

    def test_empty_document(self, worker):
        engine = Engine(lib=None, worker=worker)
        with pytest.raises(PageAccessError):
            asyncio.run(rasterize_first_page(engine, Document(num_pages=0)))
