"""In-process registry of revocable object URLs.

:meth:`ObjectUrlRegistry.create` stores a payload and returns a
``blob:<origin>/<uuid>`` URL naming it.  The payload stays reachable through
:meth:`~ObjectUrlRegistry.resolve` until the URL is revoked or the process
exits; nothing is reclaimed automatically.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Dict, Optional, Tuple

log = logging.getLogger(__name__)

BLOB_SCHEME = "blob:"


class ObjectUrlRegistry:
    """Maps object URLs to ``(data, mime_type)`` payloads."""

    def __init__(self, origin: str = "null") -> None:
        self.origin = origin
        self._entries: Dict[str, Tuple[bytes, str]] = {}
        self._lock = threading.Lock()

    def create(self, data: bytes, mime_type: str) -> str:
        url = f"{BLOB_SCHEME}{self.origin}/{uuid.uuid4()}"
        with self._lock:
            self._entries[url] = (data, mime_type)
        log.debug("Allocated %s (%d bytes, %s)", url, len(data), mime_type)
        return url

    def resolve(self, url: str) -> Optional[Tuple[bytes, str]]:
        """Return ``(data, mime_type)`` for *url*, or ``None`` if unknown."""
        with self._lock:
            return self._entries.get(url)

    def revoke(self, url: str) -> bool:
        """Release *url*.  Returns ``False`` when it was not registered."""
        with self._lock:
            found = self._entries.pop(url, None) is not None
        if found:
            log.debug("Revoked %s", url)
        return found

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_default_registry = ObjectUrlRegistry()


def get_default_registry() -> ObjectUrlRegistry:
    """Return the process-wide :class:`ObjectUrlRegistry`."""
    return _default_registry


def revoke_object_url(url: str) -> bool:
    """Revoke *url* in the process-wide registry."""
    return _default_registry.revoke(url)
