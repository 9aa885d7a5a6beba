"""Export stage — PNG encoding, output artifacts, and object URLs.

Public API
----------
- :func:`encode_to_png` — serialize a surface and publish it
- :func:`derive_image_name` — ``<stem>.pdf`` -> ``<stem>.png``
- :class:`ImageFile` — named ``image/png`` payload
- :class:`ObjectUrlRegistry` / :func:`revoke_object_url` — revocable URLs
"""

from .image_file import (
    PNG_MIME_TYPE,
    PNG_QUALITY,
    ImageFile,
    derive_image_name,
    encode_to_png,
)
from .object_url import ObjectUrlRegistry, get_default_registry, revoke_object_url

__all__ = [
    "PNG_MIME_TYPE",
    "PNG_QUALITY",
    "ImageFile",
    "ObjectUrlRegistry",
    "derive_image_name",
    "encode_to_png",
    "get_default_registry",
    "revoke_object_url",
]
