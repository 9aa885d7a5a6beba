"""Lazily-loaded PDF engine shared by every conversion in the process.

The engine is the pdfplumber module plus a worker executor on which all
blocking parse/render/encode work runs.  :class:`EngineLoader` moves through
three states::

    Unloaded ──ensure_loaded()──▶ Loading(token) ──▶ Loaded(engine)
        ▲                              │
        └──── load failed / cancelled ──┘

Concurrent callers that arrive while a load is in flight await the same
token instead of starting a second load.  A failed or cancelled load returns
the loader to ``Unloaded`` so the next call retries; a token left behind by
an event loop that has since closed is discarded the same way.
"""

from __future__ import annotations

import asyncio
import functools
import importlib
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from .config import ConversionConfig
from .errors import EngineLoadError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Engine:
    """Handle to a loaded engine module and its background worker."""

    lib: Any
    worker: Executor

    async def run(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run *fn* on the engine worker and await its result."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self.worker, functools.partial(fn, *args, **kwargs)
        )


Initializer = Callable[[ConversionConfig], Awaitable[Optional[Engine]]]


async def default_initializer(cfg: ConversionConfig) -> Engine:
    """Start the worker pool and import the engine module on it."""
    worker = ThreadPoolExecutor(
        max_workers=cfg.worker_threads, thread_name_prefix=cfg.worker_name
    )
    loop = asyncio.get_running_loop()
    try:
        lib = await loop.run_in_executor(
            worker, importlib.import_module, cfg.engine_module
        )
    except BaseException:
        worker.shutdown(wait=False)
        raise
    return Engine(lib=lib, worker=worker)


# ── Loader states ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class Unloaded:
    name = "unloaded"


@dataclass(frozen=True)
class Loading:
    token: "asyncio.Future[Engine]"
    name = "loading"


@dataclass(frozen=True)
class Loaded:
    engine: Engine
    name = "loaded"


LoaderState = Union[Unloaded, Loading, Loaded]


class EngineLoader:
    """Once-only asynchronous initializer for an :class:`Engine`.

    Parameters
    ----------
    initializer : callable, optional
        Coroutine function ``(cfg) -> Engine``.  Defaults to
        :func:`default_initializer`.
    cfg : ConversionConfig, optional
        Settings handed to the initializer.
    """

    def __init__(
        self,
        initializer: Optional[Initializer] = None,
        cfg: Optional[ConversionConfig] = None,
    ) -> None:
        self._initializer = initializer or default_initializer
        self.cfg = cfg or ConversionConfig()
        self._state: LoaderState = Unloaded()

    @property
    def state(self) -> str:
        """Current state tag: ``unloaded``, ``loading`` or ``loaded``."""
        return self._state.name

    @property
    def engine(self) -> Optional[Engine]:
        """The loaded engine, or ``None`` before loading completes."""
        if isinstance(self._state, Loaded):
            return self._state.engine
        return None

    async def ensure_loaded(self) -> Engine:
        """Return the engine, loading it first if nobody has yet.

        Raises
        ------
        EngineLoadError
            When initialization fails.  Every caller awaiting the same load
            receives the error.
        """
        state = self._state
        if isinstance(state, Loaded):
            return state.engine
        if isinstance(state, Loading) and self._is_stale(state.token):
            log.warning("Discarding abandoned PDF engine load; starting over")
            state = Unloaded()
        if isinstance(state, Unloaded):
            token = asyncio.ensure_future(self._load())
            token.add_done_callback(_retrieve_exception)
            self._state = state = Loading(token)
        # Shielded so that a cancelled caller does not abort the shared load.
        return await asyncio.shield(state.token)

    @staticmethod
    def _is_stale(token: "asyncio.Future[Engine]") -> bool:
        """True for a token that was cancelled or belongs to another loop."""
        if token.done() and token.cancelled():
            return True
        loop = token.get_loop()
        return loop.is_closed() or loop is not asyncio.get_running_loop()

    def _release(self) -> None:
        """Return to ``Unloaded`` if the running load still owns the state."""
        state = self._state
        if isinstance(state, Loading) and state.token is asyncio.current_task():
            self._state = Unloaded()

    async def _load(self) -> Engine:
        log.debug("Loading PDF engine %r", self.cfg.engine_module)
        try:
            engine = await self._initializer(self.cfg)
            if engine is None:
                raise EngineLoadError("initializer returned no engine")
        except EngineLoadError as exc:
            self._release()
            log.error("PDF engine failed to load: %s", exc.detail)
            raise
        except Exception as exc:
            self._release()
            log.error("PDF engine failed to load: %s", exc)
            raise EngineLoadError(str(exc)) from exc
        except BaseException:
            # Cancelled, typically because the owning event loop shut down.
            self._release()
            log.warning("PDF engine load was cancelled")
            raise
        self._state = Loaded(engine)
        log.info("PDF engine %r loaded", self.cfg.engine_module)
        return engine


def _retrieve_exception(token: "asyncio.Future[Engine]") -> None:
    # Marks a failure as seen when every waiter was cancelled before it landed.
    if not token.cancelled():
        token.exception()


# ── Process-wide default ───────────────────────────────────────────────

_default_loader = EngineLoader()


def get_default_loader() -> EngineLoader:
    """Return the process-wide :class:`EngineLoader`."""
    return _default_loader


async def ensure_engine_loaded() -> Engine:
    """Load (once) and return the process-wide engine."""
    return await _default_loader.ensure_loaded()
