"""
Browser automation for the third-party fuel bill form.

Drives the form with Playwright: pick a template, fill in the bill fields,
trigger the PDF download and save it under the requested name.

Design Decisions:
- One browser per batch, one fresh browser context per attempt
- Downloads are captured through Playwright rather than renaming files in a
  shared download folder
- Every Playwright failure is translated into ReceiptRenderError naming the
  step, so the retry loop only has to deal with one exception type
"""

import logging
from pathlib import Path

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from fuelbill.config import Settings
from fuelbill.domain.errors import FuelBillError
from fuelbill.domain.models import ReceiptRequest

logger = logging.getLogger(__name__)


# Form element selectors
STATION_NAME_INPUT = "#fs-station-name"
FUEL_RATE_INPUT = "#fs-fuel-rate"
AMOUNT_INPUT = "#fs-amount"
DATE_INPUT = "#fs-date"
TIME_INPUT = "#fs-time"
PAYMENT_TYPE_SELECT = "#u-payment-type"
NO_TAX_RADIO = "#vat-none"
DOWNLOAD_BUTTON = "#download-fuel-bills"

PAYMENT_TYPE = "Online"

LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


def template_selector(template: int) -> str:
    """Selector for the label of a template radio button."""
    return f'label[for="template-{template}"]'


class ReceiptRenderError(FuelBillError):
    """A single attempt to produce a bill PDF failed."""


class PlaywrightReceiptRenderer:
    """
    Produces bill PDFs by filling the online form in a headless browser.

    Use as an async context manager; the browser lives for the duration
    of the ``async with`` block.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    async def __aenter__(self) -> "PlaywrightReceiptRenderer":
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=self.settings.headless,
                args=LAUNCH_ARGS,
            )
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            raise
        logger.info("Browser launched successfully")
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
            logger.info("Browser closed")
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def render(self, request: ReceiptRequest, destination: Path) -> Path:
        """
        Fill the form for one bill and save the downloaded PDF to ``destination``.

        Raises:
            ReceiptRenderError: If any step of the automation fails
        """
        if self._browser is None:
            raise RuntimeError("Renderer used outside of 'async with'")

        try:
            context = await self._browser.new_context(accept_downloads=True)
        except PlaywrightError as exc:
            raise ReceiptRenderError(f"Failed to open browser page: {exc.message}") from exc

        try:
            page = await self._new_page(context)
            await self._open_form(page)
            await self._select_template(page, request.template)
            await self._fill_form(page, request)
            await self._download(page, destination)
        finally:
            await self._close_context(context)

        return destination

    async def _new_page(self, context: BrowserContext) -> Page:
        try:
            page = await context.new_page()
        except PlaywrightError as exc:
            raise ReceiptRenderError(f"Failed to open browser page: {exc.message}") from exc
        page.set_default_timeout(self.settings.page_timeout_ms)
        return page

    async def _close_context(self, context: BrowserContext) -> None:
        try:
            await context.close()
        except PlaywrightError as exc:
            logger.warning(f"  Could not close browser context: {exc.message}")

    async def _open_form(self, page: Page) -> None:
        logger.info(f"  Navigating to {self.settings.fuel_bill_url}...")
        try:
            await page.goto(
                self.settings.fuel_bill_url,
                wait_until="networkidle",
                timeout=self.settings.page_timeout_ms,
            )
        except PlaywrightTimeoutError as exc:
            raise ReceiptRenderError(
                "Page load timeout - website may be slow or unavailable"
            ) from exc
        except PlaywrightError as exc:
            raise ReceiptRenderError(f"Failed to load bill form: {exc.message}") from exc

    async def _select_template(self, page: Page, template: int) -> None:
        selector = template_selector(template)
        try:
            await page.wait_for_selector(selector, timeout=self.settings.element_timeout_ms)
            await page.click(selector)
            await page.wait_for_timeout(self.settings.template_settle_ms)
        except PlaywrightTimeoutError as exc:
            raise ReceiptRenderError(
                "Template selector not found - page may have changed structure"
            ) from exc
        except PlaywrightError as exc:
            raise ReceiptRenderError(f"Failed to select template {template}") from exc
        logger.info(f"  Template {template} selected")

    async def _fill_form(self, page: Page, request: ReceiptRequest) -> None:
        timeout = self.settings.element_timeout_ms
        try:
            await page.wait_for_selector(STATION_NAME_INPUT, timeout=timeout)
            await page.fill(STATION_NAME_INPUT, request.station_name)
            await page.fill(FUEL_RATE_INPUT, str(request.fuel_rate))
            await page.fill(AMOUNT_INPUT, str(request.amount))
            await page.fill(DATE_INPUT, request.slot.date_text)
            await page.fill(TIME_INPUT, request.slot.time_text)
            await page.select_option(PAYMENT_TYPE_SELECT, PAYMENT_TYPE)
            await page.click(NO_TAX_RADIO)
        except PlaywrightTimeoutError as exc:
            raise ReceiptRenderError(
                "Form elements not found - page structure may have changed"
            ) from exc
        except PlaywrightError as exc:
            raise ReceiptRenderError("Failed to fill bill form") from exc
        logger.info(f"  Form filled with amount: {request.amount}")

    async def _download(self, page: Page, destination: Path) -> None:
        try:
            await page.wait_for_selector(
                DOWNLOAD_BUTTON, timeout=self.settings.element_timeout_ms
            )
            async with page.expect_download(
                timeout=self.settings.page_timeout_ms
            ) as download_info:
                await page.click(DOWNLOAD_BUTTON)
            download = await download_info.value
            await download.save_as(destination)
        except PlaywrightTimeoutError as exc:
            raise ReceiptRenderError(
                "Download button not found or download did not start - "
                "page structure may have changed"
            ) from exc
        except PlaywrightError as exc:
            raise ReceiptRenderError("Failed to download bill PDF") from exc
        logger.info(f"  PDF saved as {destination.name}")
