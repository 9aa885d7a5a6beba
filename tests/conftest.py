"""Shared test fixtures for pdf2img."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import pytest
from PIL import Image

from pdf2img.config import ConversionConfig
from pdf2img.engine import Engine, EngineLoader

# ── Helpers ────────────────────────────────────────────────────────────


def make_pdf_bytes(num_pages: int = 1, width: int = 200, height: int = 100) -> bytes:
    """Build a small valid PDF; every page has a blue square at (10,10)-(60,60)."""
    content = b"0 0 1 rg 10 10 50 50 re f"
    kids = " ".join(f"{3 + 2 * i} 0 R" for i in range(num_pages))
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {num_pages} >>".encode(),
    ]
    for i in range(num_pages):
        objects.append(
            (
                f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 {width} {height}] "
                f"/Resources << >> /Contents {4 + 2 * i} 0 R >>"
            ).encode()
        )
        objects.append(
            f"<< /Length {len(content)} >>\nstream\n".encode()
            + content
            + b"\nendstream"
        )

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for num, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{num} 0 obj\n".encode() + body + b"\nendobj\n"
    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n0000000000 65535 f \n".encode()
    for off in offsets:
        out += f"{off:010d} 00000 n \n".encode()
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_at}\n%%EOF\n"
    ).encode()
    return bytes(out)


class FakePageImage:
    def __init__(self, original: Image.Image) -> None:
        self.original = original


class FakePage:
    """Stands in for ``pdfplumber.page.Page``."""

    def __init__(self, width: float = 200.0, height: float = 100.0) -> None:
        self.width = width
        self.height = height
        self.render_calls: list[dict] = []
        self.fail_render: Optional[Exception] = None

    def to_image(self, resolution: float, antialias: bool = False) -> FakePageImage:
        self.render_calls.append({"resolution": resolution, "antialias": antialias})
        if self.fail_render is not None:
            raise self.fail_render
        scale = resolution / 72.0
        size = (int(self.width * scale), int(self.height * scale))
        return FakePageImage(Image.new("RGB", size, (0, 0, 255)))


class FakePdf:
    def __init__(self, pages: list) -> None:
        self.pages = pages
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FakeLib:
    """Stands in for the ``pdfplumber`` module."""

    def __init__(self, pages: Optional[list] = None, fail_open: Optional[Exception] = None):
        self.pages = [FakePage()] if pages is None else pages
        self.fail_open = fail_open
        self.opened: list[FakePdf] = []

    def open(self, stream) -> FakePdf:
        if self.fail_open is not None:
            raise self.fail_open
        pdf = FakePdf(self.pages)
        self.opened.append(pdf)
        return pdf


def make_loader(engine: Engine) -> EngineLoader:
    """EngineLoader whose initializer hands back *engine*."""

    async def _init(cfg: ConversionConfig) -> Engine:
        return engine

    return EngineLoader(initializer=_init)


# ── Fixtures ───────────────────────────────────────────────────────────


@pytest.fixture
def worker():
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pdf2img-test")
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def fake_lib() -> FakeLib:
    return FakeLib()


@pytest.fixture
def fake_engine(fake_lib, worker) -> Engine:
    return Engine(lib=fake_lib, worker=worker)


@pytest.fixture
def default_cfg() -> ConversionConfig:
    return ConversionConfig()


@pytest.fixture(scope="session")
def real_loader() -> EngineLoader:
    """Loader for the real pdfplumber engine, shared across the session."""
    return EngineLoader()
