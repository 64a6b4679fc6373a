"""
File storage for generated bills.

Each batch gets its own directory under the download directory:

    download_dir/
        <batch_id>/
            fuel-bill-001.pdf
            fuel-bill-002.pdf
            fuel-bills-merged-2025-01-31T10-15-00.pdf

Design Decisions:
- Base path is passed in explicitly; nothing reads a global download directory
- One directory per batch so a merge never picks up bills from an earlier run
- Bills are ordered by the sequence number in their name, not by string order
- Merged output written atomically (temp file, then rename)
"""

import logging
import re
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

from .pdf import count_pages, merge_documents

logger = logging.getLogger(__name__)


BILL_PREFIX = "fuel-bill-"
MERGED_PREFIX = "fuel-bills-merged-"

_BATCH_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
_BILL_NAME_PATTERN = re.compile(r"^fuel-bill-(\d+)\.pdf$")


class ReceiptStore:
    """
    Local filesystem storage for bill PDFs.

    All paths handed out are inside ``base_path``.
    """

    def __init__(self, base_path: Path) -> None:
        """
        Initialize storage.

        Args:
            base_path: Download directory; created if missing.
        """
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        logger.info(f"Receipt storage initialized at {self.base_path}")

    def create_batch(self, batch_id: str | None = None) -> tuple[str, Path]:
        """Create a fresh directory for one batch and return (batch_id, path)."""
        batch_id = batch_id or uuid4().hex[:12]
        if not _BATCH_ID_PATTERN.match(batch_id):
            raise ValueError(f"Invalid batch id: {batch_id}")
        directory = self.base_path / batch_id
        directory.mkdir(parents=True, exist_ok=True)
        return batch_id, directory

    @staticmethod
    def bill_file_name(sequence_number: int) -> str:
        """File name for a single bill, e.g. ``fuel-bill-007.pdf``."""
        return f"{BILL_PREFIX}{sequence_number:03d}.pdf"

    @staticmethod
    def merged_file_name(now: datetime | None = None) -> str:
        """File name for the merged document, stamped with the UTC time."""
        now = now or datetime.now(timezone.utc)
        return f"{MERGED_PREFIX}{now.strftime('%Y-%m-%dT%H-%M-%S')}.pdf"

    def list_bills(self, directory: Path) -> list[Path]:
        """Single-bill PDFs in ``directory``, ordered by bill number."""
        numbered = []
        for path in directory.iterdir():
            match = _BILL_NAME_PATTERN.match(path.name)
            if match and path.is_file():
                numbered.append((int(match.group(1)), path))
        return [path for _, path in sorted(numbered)]

    def merge_files(self, sources: Sequence[Path], output_path: Path) -> Path:
        """
        Merge PDF files into ``output_path`` in the given order.

        Raises:
            MergeEmptyInput: If ``sources`` is empty
            MergeSourceUnreadable: If a source is not a readable PDF
        """
        logger.info(f"Merging {len(sources)} PDFs into {output_path.name}")

        documents = []
        for i, source in enumerate(sources):
            logger.info(f"  Adding: {source.name} ({i + 1}/{len(sources)})")
            documents.append(source.read_bytes())

        merged = merge_documents(documents)

        temp_path = output_path.with_suffix(".tmp")
        try:
            temp_path.write_bytes(merged)
            temp_path.rename(output_path)
        except Exception:
            temp_path.unlink(missing_ok=True)
            raise

        logger.info(
            f"Merged PDF created: {output_path.name} "
            f"({count_pages(merged)} pages, {len(merged) / 1024:.2f} KB)"
        )
        return output_path

    def merge_directory(self, directory: Path, output_name: str | None = None) -> Path:
        """Merge every single-bill PDF in ``directory`` in bill order."""
        output_name = output_name or self.merged_file_name()
        return self.merge_files(self.list_bills(directory), directory / output_name)

    def resolve(self, batch_id: str, file_name: str) -> Path:
        """
        Locate a stored PDF.

        Raises:
            FileNotFoundError: If the file does not exist or lies outside
                the download directory
        """
        file_path = (self.base_path / batch_id / file_name).resolve()

        if not file_path.is_relative_to(self.base_path):
            raise FileNotFoundError(f"Document not found: {batch_id}/{file_name}")

        if not file_path.is_file() or file_path.suffix != ".pdf":
            raise FileNotFoundError(f"Document not found: {batch_id}/{file_name}")

        return file_path
