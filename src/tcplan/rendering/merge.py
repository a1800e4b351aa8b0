"""Combine rendered page PDFs into one document with pypdf."""

import logging
from pathlib import Path

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError

from tcplan.core.errors import MergeError

logger = logging.getLogger(__name__)


def merge_pdfs(page_paths: list[Path], output_path: Path) -> Path:
    """Concatenate ``page_paths`` in order into ``output_path``.

    Every input must still exist; a missing page fails the merge rather
    than producing a combined file with a gap.

    Raises:
        MergeError: an input is missing or unreadable, or the write fails.
    """
    if not page_paths:
        raise MergeError("No pages to merge")

    writer = PdfWriter()
    try:
        for path in page_paths:
            if not path.exists():
                raise MergeError(f"Page artifact missing: {path}")
            reader = PdfReader(path)
            for page in reader.pages:
                writer.add_page(page)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "wb") as f:
            writer.write(f)
    except MergeError:
        raise
    except (PyPdfError, OSError, ValueError) as e:
        output_path.unlink(missing_ok=True)
        raise MergeError(f"Could not combine PDFs: {e}") from e

    logger.info("Combined %d pages → %s", len(page_paths), output_path.name)
    return output_path
