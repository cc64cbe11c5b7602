"""The interface of engines that operate on PDF files."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from gotenberg.deadline import Deadline


class PdfEngineMethodNotSupportedError(Exception):
    """A method is not supported by the current engine."""

    def __init__(self, message: str = "method not supported") -> None:
        super().__init__(message)


class PdfSplitModeNotSupportedError(Exception):
    """The engine does not support the requested split mode."""

    def __init__(self, message: str = "split mode not supported") -> None:
        super().__init__(message)


class PdfFormatNotSupportedError(Exception):
    """The engine does not support the requested PDF format."""

    def __init__(self, message: str = "PDF format not supported") -> None:
        super().__init__(message)


class PdfEngineMetadataValueNotSupportedError(Exception):
    """A metadata value is not supported."""

    def __init__(self, message: str = "metadata value not supported") -> None:
        super().__init__(message)


SPLIT_MODE_INTERVALS = "intervals"
SPLIT_MODE_PAGES = "pages"

PDF_A_1A = "PDF/A-1a"
PDF_A_1B = "PDF/A-1b"
PDF_A_2A = "PDF/A-2a"
PDF_A_2B = "PDF/A-2b"
PDF_A_2U = "PDF/A-2u"
PDF_A_3A = "PDF/A-3a"
PDF_A_3B = "PDF/A-3b"
PDF_A_3U = "PDF/A-3u"


@dataclass(frozen=True)
class SplitMode:
    """How to split a PDF: by ``"intervals"`` or ``"pages"``.

    ``unify`` puts the extracted pages into a single file (pages mode only).
    """

    mode: str
    span: str
    unify: bool = False


@dataclass(frozen=True)
class PdfFormats:
    """Target formats of a conversion: a PDF/A variant and PDF/UA compliance."""

    pdf_a: str = ""
    pdf_ua: bool = False


@runtime_checkable
class PdfEngine(Protocol):
    """Operations on PDF files."""

    def merge(
        self, deadline: Deadline, logger: logging.Logger, input_paths: list[str], output_path: str
    ) -> None:
        """Merge the input PDFs, in order, into the output path."""

    def split(
        self,
        deadline: Deadline,
        logger: logging.Logger,
        mode: SplitMode,
        input_path: str,
        output_dir_path: str,
    ) -> list[str]:
        """Split a PDF and return the paths of the resulting files."""

    def flatten(self, deadline: Deadline, logger: logging.Logger, input_path: str) -> None:
        """Merge annotation appearances into the page content, irreversibly."""

    def convert(
        self,
        deadline: Deadline,
        logger: logging.Logger,
        formats: PdfFormats,
        input_path: str,
        output_path: str,
    ) -> None:
        """Convert a PDF to the given formats; nothing happens without a format."""

    def read_metadata(
        self, deadline: Deadline, logger: logging.Logger, input_path: str
    ) -> dict[str, Any]:
        """Return the metadata of a PDF."""

    def write_metadata(
        self,
        deadline: Deadline,
        logger: logging.Logger,
        metadata: dict[str, Any],
        input_path: str,
    ) -> None:
        """Write metadata into a PDF."""


@runtime_checkable
class PdfEngineProvider(Protocol):
    """A module that supplies a PdfEngine."""

    def pdf_engine(self) -> PdfEngine:
        """Return a PdfEngine instance."""