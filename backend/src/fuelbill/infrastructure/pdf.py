"""
PDF concatenation.

Merges already-produced PDF documents into one, page order preserved.
Works on bytes only; reading and writing files is the caller's job
(see ``storage.ReceiptStore``).
"""

import io
from collections.abc import Sequence

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PyPdfError

from fuelbill.domain.errors import MergeEmptyInput, MergeSourceUnreadable


def _load(document: bytes, index: int) -> PdfReader:
    try:
        reader = PdfReader(io.BytesIO(document))
        # Page tree is parsed lazily; touch it so broken files fail here
        len(reader.pages)
    except (PyPdfError, ValueError, OSError) as exc:
        raise MergeSourceUnreadable(index, str(exc) or type(exc).__name__) from exc
    return reader


def merge_documents(documents: Sequence[bytes]) -> bytes:
    """
    Concatenate PDF documents into a single PDF.

    Each input is loaded in order and all of its pages are appended in their
    original order. Inputs are not modified.

    Raises:
        MergeEmptyInput: If ``documents`` is empty
        MergeSourceUnreadable: If an input cannot be parsed (names its index)
    """
    if not documents:
        raise MergeEmptyInput()

    writer = PdfWriter()
    for index, document in enumerate(documents):
        reader = _load(document, index)
        for page in reader.pages:
            writer.add_page(page)

    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def count_pages(document: bytes) -> int:
    """Number of pages in a PDF document."""
    return len(_load(document, 0).pages)
