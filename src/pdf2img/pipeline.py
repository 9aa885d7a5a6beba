"""Conversion pipeline: stage timing, result contract, and orchestration.

The canonical flow for one conversion is::

    engine → read → parse → rasterize → encode

Every step runs inside :func:`run_stage`, which records a
:class:`StageResult` (status, timing, error).  The first failing stage
short-circuits the rest; :meth:`Converter.convert` turns that failure into a
:class:`ConversionResult` carrying only the categorized error message, so
callers never see an exception.
"""

from __future__ import annotations

import logging
import time
import traceback
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from .config import ConversionConfig
from .engine import EngineLoader, get_default_loader
from .errors import ConversionError, FileReadError, UnknownConversionError
from .export import ImageFile, ObjectUrlRegistry, encode_to_png, get_default_registry
from .ingest import FileLike, open_document
from .render import SurfaceProvider, rasterize_first_page

log = logging.getLogger(__name__)

# Canonical stage sequence.
STAGE_ORDER: List[str] = ["engine", "read", "parse", "rasterize", "encode"]


class SkipReason(str, Enum):
    """Why a pipeline stage was skipped."""

    upstream_failed = "upstream_failed"


# ── Stage result ───────────────────────────────────────────────────────


@dataclass
class StageResult:
    """Outcome record for a single pipeline stage."""

    stage: str
    ran: bool = False
    status: str = "skipped"  # "success" | "skipped" | "failed"
    skip_reason: Optional[str] = None
    duration_ms: int = 0
    counts: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize stage result to a JSON-compatible dict."""
        d: Dict[str, Any] = {
            "stage": self.stage,
            "ran": self.ran,
            "status": self.status,
        }
        if self.skip_reason is not None:
            d["skip_reason"] = self.skip_reason
        d["duration_ms"] = self.duration_ms
        if self.counts:
            d["counts"] = self.counts
        if self.error is not None:
            d["error"] = self.error
        return d


@asynccontextmanager
async def run_stage(
    stage: str, stages: Dict[str, StageResult]
) -> AsyncIterator[StageResult]:
    """Async context manager that times *stage* and records its outcome.

    Usage::

        async with run_stage("parse", stages) as sr:
            doc = await open_document(engine, data)
            sr.counts["num_pages"] = doc.num_pages

    The :class:`StageResult` is stored in *stages* under *stage*.  Failures
    are logged here and re-raised so the orchestrator can stop the run.
    """
    sr = StageResult(stage=stage, ran=True)
    stages[stage] = sr
    t0 = time.perf_counter()
    try:
        yield sr
        if sr.status not in ("success", "failed"):
            sr.status = "success"
    except Exception as exc:
        sr.status = "failed"
        sr.error = {
            "type": type(exc).__name__,
            "message": str(exc),
            "stack": traceback.format_exc(),
        }
        if isinstance(exc, ConversionError):
            log.error("Stage %s failed: %s: %s", stage, exc.message, exc.detail)
        else:
            log.exception("Stage %s raised unexpectedly", stage)
        raise
    finally:
        sr.duration_ms = int((time.perf_counter() - t0) * 1000)
        log.debug("Stage %s %s in %d ms", stage, sr.status, sr.duration_ms)


# ── Result contract ────────────────────────────────────────────────────


@dataclass
class ConversionResult:
    """Outcome of :func:`convert_pdf_to_image`.

    On success ``image_url`` is a revocable object URL and ``file`` holds the
    PNG.  On failure ``error`` is set, ``image_url`` is ``""`` and ``file``
    is ``None``.
    """

    image_url: str = ""
    file: Optional[ImageFile] = None
    error: Optional[str] = None
    stages: Dict[str, StageResult] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.error is not None and (self.image_url or self.file is not None):
            raise ValueError("a failed ConversionResult cannot carry an image")

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(
        cls, message: str, stages: Optional[Dict[str, StageResult]] = None
    ) -> "ConversionResult":
        return cls(image_url="", file=None, error=message, stages=stages or {})

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict (payload bytes omitted)."""
        d: Dict[str, Any] = {"image_url": self.image_url, "file": None}
        if self.file is not None:
            d["file"] = {
                "name": self.file.name,
                "type": self.file.type,
                "size": self.file.size,
            }
        if self.error is not None:
            d["error"] = self.error
        d["stages"] = {n: sr.to_dict() for n, sr in self.stages.items()}
        return d


# ── Orchestration ──────────────────────────────────────────────────────


class Converter:
    """Runs the conversion pipeline against injectable collaborators.

    Parameters
    ----------
    loader : EngineLoader, optional
        Defaults to the process-wide loader.
    surfaces : SurfaceProvider, optional
        Allocates the pixel surface for each conversion.
    urls : ObjectUrlRegistry, optional
        Defaults to the process-wide registry.
    cfg : ConversionConfig, optional
        Defaults to the loader's config.
    """

    def __init__(
        self,
        loader: Optional[EngineLoader] = None,
        surfaces: Optional[SurfaceProvider] = None,
        urls: Optional[ObjectUrlRegistry] = None,
        cfg: Optional[ConversionConfig] = None,
    ) -> None:
        self.loader = loader if loader is not None else get_default_loader()
        self.surfaces = surfaces if surfaces is not None else SurfaceProvider()
        self.urls = urls if urls is not None else get_default_registry()
        self.cfg = cfg if cfg is not None else self.loader.cfg

    async def _run(
        self, file: FileLike, stages: Dict[str, StageResult]
    ) -> Tuple[str, ImageFile]:
        async with run_stage("engine", stages):
            engine = await self.loader.ensure_loaded()

        async with run_stage("read", stages) as sr:
            data = await file.read_bytes()
            if data is None:
                raise FileReadError(f"no bytes read from {file.name!r}")
            sr.counts["bytes"] = len(data)

        async with run_stage("parse", stages) as sr:
            doc = await open_document(engine, data)
            sr.counts["num_pages"] = doc.num_pages

        with doc:
            async with run_stage("rasterize", stages) as sr:
                surface, width, height = await rasterize_first_page(
                    engine, doc, self.surfaces
                )
                sr.counts = {"width": width, "height": height}

        async with run_stage("encode", stages) as sr:
            image_url, image_file = await encode_to_png(
                engine,
                surface,
                file.name,
                self.urls,
                compress_level=self.cfg.png_compress_level,
            )
            sr.counts["bytes"] = image_file.size

        return image_url, image_file

    async def convert(self, file: FileLike) -> ConversionResult:
        """Convert the first page of *file* to PNG.  Never raises."""
        stages: Dict[str, StageResult] = {}
        try:
            image_url, image_file = await self._run(file, stages)
        except ConversionError as exc:
            return self._failed(exc, stages)
        except Exception as exc:
            return self._failed(UnknownConversionError.wrap(exc), stages)

        log.info(
            "Converted %s -> %s (%.1f KB)",
            file.name,
            image_file.name,
            image_file.size / 1024,
        )
        return ConversionResult(image_url=image_url, file=image_file, stages=stages)

    @staticmethod
    def _failed(
        exc: ConversionError, stages: Dict[str, StageResult]
    ) -> ConversionResult:
        for name in STAGE_ORDER:
            if name not in stages:
                stages[name] = StageResult(
                    stage=name, skip_reason=SkipReason.upstream_failed.value
                )
        return ConversionResult.failure(exc.user_message, stages)


async def convert_pdf_to_image(file: FileLike) -> ConversionResult:
    """Convert the first page of *file* using the process-wide engine.

    The returned ``image_url`` stays registered until passed to
    :func:`~pdf2img.export.revoke_object_url`.
    """
    return await Converter().convert(file)
