# label_designer/printing/exceptions.py
"""
Consistent error types for the print sinks.

No Qt dependencies: this module is pure Python so it can be used
in non-GUI contexts (tests, CLI tools, dry-run pipelines).
"""
from __future__ import annotations


class PrintError(Exception):
    """Base exception for all printing errors."""


class PrintOutputError(PrintError):
    """The sink could not write its output (disk full, permissions, bad path)."""


class PrintConfigError(PrintError):
    """Invalid or incomplete print configuration (format, DPI, directory)."""


class PrintJobError(PrintError):
    """Error while producing the job itself (rasterization, empty markup)."""


# ---------------------------------------------------------------------------
# Error-mapping helpers
# ---------------------------------------------------------------------------

_OUTPUT_PATTERNS: list[tuple[type, str]] = [
    (PermissionError, "Permission denied writing the print output."),
    (FileNotFoundError, "Print output directory does not exist."),
    (IsADirectoryError, "Print output path is a directory."),
    (OSError, "Could not write the print output."),
]


def _chain(new: PrintError, cause: BaseException) -> PrintError:
    """Attach *cause* as ``__cause__`` (mimics ``raise new from cause``)."""
    new.__cause__ = cause
    return new


def map_exception(exc: BaseException) -> PrintError:
    """
    Wrap a low-level exception into the appropriate ``PrintError`` subclass
    with a user-friendly message while preserving the original as ``__cause__``.

    If *exc* is already a ``PrintError`` it is returned unchanged.
    """
    if isinstance(exc, PrintError):
        return exc

    for exc_type, message in _OUTPUT_PATTERNS:
        if isinstance(exc, exc_type):
            detail = getattr(exc, "filename", None)
            return _chain(PrintOutputError(f"{message} ({detail})" if detail else message), exc)

    if isinstance(exc, (ValueError, KeyError)):
        return _chain(PrintConfigError(str(exc)), exc)

    return _chain(PrintJobError(str(exc)), exc)


def friendly_message(exc: BaseException) -> str:
    """Return a short, UI-safe description for *exc*."""
    return str(map_exception(exc))
