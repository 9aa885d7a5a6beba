"""Ingest stage — input files and PDF parsing.

Public API
----------
- :func:`open_document` — parse PDF bytes into a :class:`Document`
- :class:`Document` / :class:`Page` — call-local document and page handles
- :class:`PdfFile` — file-like input (name + bytes or path)
- :class:`FileLike` — protocol accepted by the pipeline
"""

from .document import Document, FileLike, Page, PdfFile, open_document

__all__ = [
    "Document",
    "FileLike",
    "Page",
    "PdfFile",
    "open_document",
]
