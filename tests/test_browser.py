import asyncio
import random
from datetime import date, time
from decimal import Decimal

import pytest
from playwright.async_api import Error as PlaywrightError

from fuelbill.domain.models import BillParameters, ReceiptRequest, ScheduleSlot
from fuelbill.services.browser import PlaywrightReceiptRenderer, ReceiptRenderError
from fuelbill.services.generator import BillGenerator, UnitState


class CrashedBrowser:
    """Browser whose process went away: no new context can be opened."""

    def __init__(self) -> None:
        self.context_requests = 0

    async def new_context(self, **kwargs):
        self.context_requests += 1
        raise PlaywrightError("Target page, context or browser has been closed")


class PagelessContext:
    """Context that opens but cannot create a page."""

    def __init__(self) -> None:
        self.closed = False

    async def new_page(self):
        raise PlaywrightError("Target closed")

    async def close(self) -> None:
        self.closed = True


class PagelessBrowser:
    def __init__(self) -> None:
        self.contexts: list[PagelessContext] = []

    async def new_context(self, **kwargs):
        context = PagelessContext()
        self.contexts.append(context)
        return context


class AttachedRenderer(PlaywrightReceiptRenderer):
    """Renderer wired to a stand-in browser instead of launching Chromium."""

    def __init__(self, settings, browser) -> None:
        super().__init__(settings)
        self.browser = browser

    async def __aenter__(self) -> "AttachedRenderer":
        self._browser = self.browser
        return self

    async def __aexit__(self, *exc_info) -> None:
        self._browser = None


def _request() -> ReceiptRequest:
    return ReceiptRequest(
        sequence_number=1,
        station_name="HP Petrol",
        fuel_rate=Decimal("104.21"),
        template=2,
        amount=Decimal("750.00"),
        slot=ScheduleSlot(date=date(2025, 3, 4), time=time(14, 5)),
    )


class TestRenderErrors:
    """Test browser failures surface as ReceiptRenderError."""

    def test_context_creation_failure(self, settings, tmp_path):
        browser = CrashedBrowser()
        renderer = AttachedRenderer(settings, browser)

        async def run():
            async with renderer:
                await renderer.render(_request(), tmp_path / "fuel-bill-001.pdf")

        with pytest.raises(ReceiptRenderError, match="Failed to open browser page"):
            asyncio.run(run())
        assert browser.context_requests == 1

    def test_page_creation_failure_closes_context(self, settings, tmp_path):
        browser = PagelessBrowser()
        renderer = AttachedRenderer(settings, browser)

        async def run():
            async with renderer:
                await renderer.render(_request(), tmp_path / "fuel-bill-001.pdf")

        with pytest.raises(ReceiptRenderError, match="Failed to open browser page"):
            asyncio.run(run())
        assert [c.closed for c in browser.contexts] == [True]

    def test_render_outside_context_manager(self, settings, tmp_path):
        renderer = PlaywrightReceiptRenderer(settings)
        with pytest.raises(RuntimeError):
            asyncio.run(renderer.render(_request(), tmp_path / "fuel-bill-001.pdf"))


class TestCrashedBrowserInBatch:
    """Test a crashed browser goes through the retry loop like any other failure."""

    def _params(self) -> BillParameters:
        return BillParameters(
            station_name="HP Petrol",
            fuel_rate=Decimal("104.21"),
            template=2,
            total_amount=Decimal("1200.00"),
            number_of_bills=2,
            max_amount_per_bill=Decimal("1000.00"),
            start_date=date(2025, 3, 1),
            end_date=date(2025, 3, 31),
        )

    def test_retried_then_reported(self, settings, store, sleep_recorder):
        browser = CrashedBrowser()
        generator = BillGenerator(
            settings=settings,
            store=store,
            renderer_factory=lambda: AttachedRenderer(settings, browser),
            sleep=sleep_recorder,
            rng=random.Random(7),
        )

        result = asyncio.run(generator.generate(self._params(), allow_partial=True))

        assert result.receipts == []
        assert [u.state for u in result.failed_units] == [UnitState.EXHAUSTED] * 2
        assert all(u.attempts == 3 for u in result.failed_units)
        assert "Failed to open browser page" in result.failed_units[0].last_error
        assert browser.context_requests == 6
        assert sleep_recorder.waits == [2.0, 4.0, 2.0, 4.0]
