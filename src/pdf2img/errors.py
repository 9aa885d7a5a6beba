"""Failure taxonomy for the conversion pipeline.

Each class carries the exact message callers receive in
:attr:`~pdf2img.pipeline.ConversionResult.error`.  The ``detail`` string is
for logs only.
"""

from __future__ import annotations

from typing import Optional


class ConversionError(Exception):
    """Base class for every categorized conversion failure."""

    message = "Failed to convert PDF"

    def __init__(self, detail: Optional[str] = None) -> None:
        self.detail = detail
        super().__init__(detail or self.message)

    @property
    def user_message(self) -> str:
        """Message surfaced to the caller."""
        return self.message


class EngineLoadError(ConversionError):
    message = "PDF.js library failed to load"


class FileReadError(ConversionError):
    message = "Failed to read file as arrayBuffer"


class DocumentLoadError(ConversionError):
    message = "Failed to load PDF document"


class PageAccessError(ConversionError):
    message = "Failed to get first page of PDF"


class ContextAcquisitionError(ConversionError):
    message = "Failed to get 2D context from canvas"


class EncodingError(ConversionError):
    message = "Failed to create image blob"


class RenderError(ConversionError):
    """The engine failed while drawing the page onto the surface."""

    @property
    def user_message(self) -> str:
        return describe_failure(self.detail or "render failed")


class UnknownConversionError(ConversionError):
    """Wraps an exception that no named stage anticipated."""

    @classmethod
    def wrap(cls, exc: BaseException) -> "UnknownConversionError":
        err = cls(str(exc))
        err.__cause__ = exc
        return err

    @property
    def user_message(self) -> str:
        return describe_failure(self.detail or "")


def describe_failure(detail: str) -> str:
    """Format the catch-all message: ``Failed to convert PDF: <detail>``."""
    return f"{ConversionError.message}: {detail}"
