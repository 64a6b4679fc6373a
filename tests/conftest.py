"""Shared fixtures for the fuel bill test suite."""

import io
from pathlib import Path

import pytest
from pypdf import PdfReader
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from fuelbill.config import Settings
from fuelbill.domain.models import ReceiptRequest
from fuelbill.infrastructure.storage import ReceiptStore
from fuelbill.services.browser import ReceiptRenderError


def _make_pdf(*labels: str) -> bytes:
    """Create a PDF with one page per label, the label printed on its page."""
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4
    for label in labels:
        c.setFont("Helvetica-Bold", 16)
        c.drawString(72, height - 72, label)
        c.showPage()
    c.save()
    return buffer.getvalue()


def _page_texts(document: bytes) -> list[str]:
    """Extracted text of every page, in order."""
    reader = PdfReader(io.BytesIO(document))
    return [page.extract_text().strip() for page in reader.pages]


@pytest.fixture
def make_pdf():
    return _make_pdf


@pytest.fixture
def page_texts():
    return _page_texts


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        download_dir=tmp_path / "downloads",
        max_retries=3,
        retry_backoff_seconds=2.0,
        min_days_apart=3,
    )


@pytest.fixture
def store(settings: Settings) -> ReceiptStore:
    return ReceiptStore(settings.download_dir)


class FakeRenderer:
    """
    Stand-in for the browser renderer.

    ``failures`` maps a bill number to how many attempts fail before one
    succeeds. ``corrupt`` bill numbers get a file that is not a PDF.
    """

    def __init__(
        self,
        failures: dict[int, int] | None = None,
        corrupt: set[int] | None = None,
    ) -> None:
        self.failures = dict(failures or {})
        self.corrupt = corrupt or set()
        self.calls: list[int] = []
        self.entered = False
        self.exited = False

    async def __aenter__(self) -> "FakeRenderer":
        self.entered = True
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.exited = True

    async def render(self, request: ReceiptRequest, destination: Path) -> Path:
        number = request.sequence_number
        self.calls.append(number)

        if self.failures.get(number, 0) > 0:
            self.failures[number] -= 1
            raise ReceiptRenderError(f"Form elements not found for bill {number}")

        if number in self.corrupt:
            destination.write_bytes(b"this is not a pdf")
        else:
            destination.write_bytes(_make_pdf(f"Bill {number} {request.amount}"))
        return destination


@pytest.fixture
def fake_renderer_class():
    return FakeRenderer


class SleepRecorder:
    """Records backoff waits instead of sleeping."""

    def __init__(self) -> None:
        self.waits: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()
