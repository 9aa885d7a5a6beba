"""Render the first page of a PDF to a PNG image artifact.

Frequently-used symbols are re-exported here for convenience.  For the
individual stages import from the relevant submodule, e.g.::

    from pdf2img.render import rasterize_first_page
    from pdf2img.export import derive_image_name
"""

# ── Core models & config ──────────────────────────────────────────────

from .config import ConfigValidationError, ConversionConfig
from .engine import Engine, EngineLoader, ensure_engine_loaded, get_default_loader
from .errors import (
    ContextAcquisitionError,
    ConversionError,
    DocumentLoadError,
    EncodingError,
    EngineLoadError,
    FileReadError,
    PageAccessError,
    RenderError,
    UnknownConversionError,
)
from .export import ImageFile, ObjectUrlRegistry, derive_image_name, revoke_object_url
from .ingest import PdfFile
from .pipeline import ConversionResult, Converter, StageResult, convert_pdf_to_image

__all__ = [
    # Config
    "ConfigValidationError",
    "ConversionConfig",
    # Engine
    "Engine",
    "EngineLoader",
    "ensure_engine_loaded",
    "get_default_loader",
    # Errors
    "ConversionError",
    "EngineLoadError",
    "FileReadError",
    "DocumentLoadError",
    "PageAccessError",
    "ContextAcquisitionError",
    "RenderError",
    "EncodingError",
    "UnknownConversionError",
    # Input / output
    "PdfFile",
    "ImageFile",
    "ObjectUrlRegistry",
    "derive_image_name",
    "revoke_object_url",
    # Pipeline
    "ConversionResult",
    "Converter",
    "StageResult",
    "convert_pdf_to_image",
]
