from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..core.render import RenderResult
from .exceptions import PrintConfigError, PrintJobError

log = logging.getLogger(__name__)

DEFAULT_DPI = 300
OUTPUT_FORMATS = ("svg", "png")


def safe_filename(name: str) -> str:
    stem = re.sub(r"[^A-Za-z0-9_.-]+", "_", (name or "").strip()).strip("._")
    return stem or "label"


class BaseSink:
    """Receives rendered labels. ``send`` returns where the job went."""

    def send(self, result: RenderResult, name: str) -> str:
        raise NotImplementedError

    @staticmethod
    def _check(result: RenderResult) -> None:
        if not result.markup:
            raise PrintJobError("Nothing to print: empty label markup.")


@dataclass
class SentJob:
    name: str
    markup: str


class DryRunSink(BaseSink):
    """Collects jobs in memory instead of producing output."""

    def __init__(self):
        self.jobs: List[SentJob] = []

    def send(self, result: RenderResult, name: str) -> str:
        self._check(result)
        self.jobs.append(SentJob(name, result.markup))
        log.info("[dry-run] label %r (%d bytes)", name, len(result.markup))
        return f"dry-run:{len(self.jobs)}"

    @property
    def last(self) -> Optional[SentJob]:
        return self.jobs[-1] if self.jobs else None


class _FileSink(BaseSink):
    extension = ""

    def __init__(self, directory: str):
        if not directory:
            raise PrintConfigError("No print output directory configured.")
        self.directory = os.path.abspath(os.path.expanduser(directory))

    def target_path(self, name: str) -> str:
        return os.path.join(self.directory, f"{safe_filename(name)}.{self.extension}")

    def _write(self, path: str, payload: bytes) -> None:
        os.makedirs(self.directory, exist_ok=True)
        with open(path, "wb") as f:
            f.write(payload)


class SvgFileSink(_FileSink):
    extension = "svg"

    def send(self, result: RenderResult, name: str) -> str:
        self._check(result)
        path = self.target_path(name)
        self._write(path, result.markup.encode("utf-8"))
        log.info("Wrote %s", path)
        return path


class PngFileSink(_FileSink):
    """Rasterizes through Qt's SVG renderer; needs a QGuiApplication."""
    extension = "png"

    def __init__(self, directory: str, dpi: int = DEFAULT_DPI):
        super().__init__(directory)
        if int(dpi) <= 0:
            raise PrintConfigError(f"DPI must be positive, got {dpi}")
        self.dpi = int(dpi)

    def send(self, result: RenderResult, name: str) -> str:
        from .raster import svg_to_png_bytes

        self._check(result)
        path = self.target_path(name)
        self._write(path, svg_to_png_bytes(result.markup, self.dpi))
        log.info("Wrote %s at %d dpi", path, self.dpi)
        return path


def make_sink(output_format: str, directory: str, dpi: int = DEFAULT_DPI) -> BaseSink:
    fmt = (output_format or "").lower()
    if fmt == "dry-run":
        return DryRunSink()
    if fmt == "svg":
        return SvgFileSink(directory)
    if fmt == "png":
        return PngFileSink(directory, dpi)
    raise PrintConfigError(f"Unknown print output format: {output_format!r}")


def send_sheets(sink: BaseSink, results: Sequence[RenderResult], name: str) -> List[str]:
    """Send every sheet of a run; a run of several sheets numbers them ``name-1``, ``name-2``..."""
    if not results:
        raise PrintJobError("Nothing to print: no sheets.")
    if len(results) == 1:
        return [sink.send(results[0], name)]
    return [sink.send(result, f"{name}-{i}") for i, result in enumerate(results, start=1)]
