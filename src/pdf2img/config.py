from dataclasses import dataclass


class ConfigValidationError(ValueError):
    """Raised when a ConversionConfig field has an invalid value."""


def _check_range(name: str, value: int, lo: int, hi: int) -> None:
    if not (lo <= value <= hi):
        raise ConfigValidationError(f"{name}={value} out of range [{lo}, {hi}]")


def _check_non_empty(name: str, value: str) -> None:
    if not value:
        raise ConfigValidationError(f"{name} must be a non-empty string")


@dataclass
class ConversionConfig:
    """Runtime settings for the conversion engine and its outputs."""

    # Module imported by the default engine initializer.
    engine_module: str = "pdfplumber"
    # Worker pool used for parsing, rendering and encoding.  pdfium is not
    # thread-safe, so more than one worker only helps with custom engines.
    worker_threads: int = 1
    worker_name: str = "pdf2img-worker"
    # zlib level for PNG output (lossless at every level).
    png_compress_level: int = 6

    def __post_init__(self) -> None:
        """Validate field ranges to catch misconfiguration early."""
        _check_non_empty("engine_module", self.engine_module)
        _check_non_empty("worker_name", self.worker_name)
        if self.worker_threads < 1:
            raise ConfigValidationError(
                f"worker_threads={self.worker_threads} must be >= 1"
            )
        _check_range("png_compress_level", self.png_compress_level, 0, 9)
