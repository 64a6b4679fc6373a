"""
Bill batch orchestrator.

Coordinates the full generation pipeline:
1. Amount distribution across the bills
2. Date/time allocation with minimum spacing
3. One form automation per bill, strictly in sequence, with retries
4. Merge of the produced PDFs into one document

This is the primary interface for bill generation.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol, Self

from fuelbill.config import Settings
from fuelbill.domain.distribution import distribute
from fuelbill.domain.errors import FuelBillError, MergeError
from fuelbill.domain.models import BillParameters, ReceiptRequest, ReceiptUnit
from fuelbill.domain.schedule import allocate
from fuelbill.infrastructure.storage import ReceiptStore

from .browser import ReceiptRenderError

logger = logging.getLogger(__name__)


class ReceiptRenderer(Protocol):
    """Something that turns a ReceiptRequest into a PDF file."""

    async def __aenter__(self) -> Self: ...

    async def __aexit__(self, *exc_info) -> None: ...

    async def render(self, request: ReceiptRequest, destination: Path) -> Path: ...


class GenerationFailed(FuelBillError):
    """A bill exhausted its retries and partial batches were not allowed."""

    def __init__(self, sequence_number: int, attempts: int, last_error: str) -> None:
        self.sequence_number = sequence_number
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Failed to generate bill {sequence_number} after {attempts} attempts: {last_error}"
        )


class UnitState(Enum):
    """Lifecycle of a single bill within a batch."""
    PENDING = "pending"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass
class UnitProgress:
    """
    Retry state for one bill.

    Mutable because it advances attempt by attempt. Backoff grows
    linearly: the wait after failed attempt N is N times the base.
    """
    request: ReceiptRequest
    max_attempts: int
    backoff_base: float
    state: UnitState = UnitState.PENDING
    attempts: int = 0
    next_backoff: float = 0.0
    last_error: str | None = None

    def start_attempt(self) -> None:
        if self.state not in (UnitState.PENDING, UnitState.ATTEMPTING):
            raise RuntimeError(f"Cannot attempt bill in state {self.state.value}")
        self.state = UnitState.ATTEMPTING
        self.attempts += 1

    def succeed(self) -> None:
        self.state = UnitState.SUCCEEDED
        self.next_backoff = 0.0

    def fail(self, error: str) -> None:
        """Record a failed attempt; exhausts the unit when no attempts remain."""
        self.last_error = error
        if self.attempts >= self.max_attempts:
            self.state = UnitState.EXHAUSTED
            self.next_backoff = 0.0
        else:
            self.next_backoff = self.attempts * self.backoff_base

    @property
    def finished(self) -> bool:
        return self.state in (UnitState.SUCCEEDED, UnitState.EXHAUSTED)


@dataclass
class GenerationResult:
    """Outcome of one batch run."""
    batch_id: str
    directory: Path
    receipts: list[ReceiptUnit] = field(default_factory=list)
    failed_units: list[UnitProgress] = field(default_factory=list)
    merged_path: Path | None = None

    @property
    def complete(self) -> bool:
        """True if every bill in the batch was produced."""
        return not self.failed_units


def build_requests(
    params: BillParameters,
    min_days_apart: int,
    rng: random.Random | None = None,
) -> list[ReceiptRequest]:
    """Zip distributed amounts and allocated slots into one request per bill."""
    amounts = distribute(
        params.total_amount,
        params.number_of_bills,
        params.max_amount_per_bill,
        rng=rng,
    )
    slots = allocate(
        params.number_of_bills,
        params.start_date,
        params.end_date,
        min_days_apart,
        rng=rng,
    )
    return [
        ReceiptRequest(
            sequence_number=i + 1,
            station_name=params.station_name,
            fuel_rate=params.fuel_rate,
            template=params.template,
            amount=amount,
            slot=slot,
        )
        for i, (amount, slot) in enumerate(zip(amounts, slots, strict=True))
    ]


class BillGenerator:
    """
    Generates a batch of bills end to end.

    Bills are produced one at a time: bill N is finished (or has exhausted
    its retries) before bill N+1 starts. The merge runs once, after the last
    bill, over the successful bills in sequence order.
    """

    def __init__(
        self,
        settings: Settings,
        store: ReceiptStore,
        renderer_factory: Callable[[], ReceiptRenderer],
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize generator.

        Args:
            settings: Retry policy and spacing
            store: Where bill PDFs are written
            renderer_factory: Creates the renderer for one batch
            sleep: Awaitable used for backoff waits
            rng: Random source for amounts and dates
        """
        self.settings = settings
        self.store = store
        self.renderer_factory = renderer_factory
        self.sleep = sleep
        self.rng = rng

    async def generate(
        self,
        params: BillParameters,
        allow_partial: bool = False,
    ) -> GenerationResult:
        """
        Generate every bill of a batch and merge them.

        Args:
            params: Validated request parameters
            allow_partial: Keep going when a bill exhausts its retries and
                merge whatever succeeded. When False, the batch aborts.

        Returns:
            GenerationResult with produced bills, failures and merged path

        Raises:
            InfeasibleDistribution / InfeasibleSchedule: Invalid parameters
            ScheduleGenerationExhausted: Date search gave up (retryable)
            GenerationFailed: A bill failed and allow_partial is False
        """
        logger.info(
            f"Starting bill generation: {params.number_of_bills} bills, "
            f"total {params.total_amount}"
        )

        requests = build_requests(params, self.settings.min_days_apart, self.rng)
        logger.info(f"Amount distribution: {[str(r.amount) for r in requests]}")
        logger.info(f"Dates: {[r.slot.date_text for r in requests]}")

        batch_id, directory = self.store.create_batch()
        result = GenerationResult(batch_id=batch_id, directory=directory)

        async with self.renderer_factory() as renderer:
            for request in requests:
                logger.info(
                    f"Generating bill {request.sequence_number} of {len(requests)}..."
                )
                progress = await self._produce(renderer, request, directory)

                if progress.state is UnitState.SUCCEEDED:
                    result.receipts.append(
                        ReceiptUnit(
                            sequence_number=request.sequence_number,
                            amount=request.amount,
                            slot=request.slot,
                            source_document_path=directory / self.store.bill_file_name(
                                request.sequence_number
                            ),
                            station_name=request.station_name,
                        )
                    )
                    continue

                if not allow_partial:
                    raise GenerationFailed(
                        request.sequence_number,
                        progress.attempts,
                        progress.last_error or "unknown error",
                    )
                logger.warning(
                    f"Bill {request.sequence_number} skipped after "
                    f"{progress.attempts} attempts: {progress.last_error}"
                )
                result.failed_units.append(progress)

        result.merged_path = self._merge(result)
        return result

    async def _produce(
        self,
        renderer: ReceiptRenderer,
        request: ReceiptRequest,
        directory: Path,
    ) -> UnitProgress:
        progress = UnitProgress(
            request=request,
            max_attempts=self.settings.max_retries,
            backoff_base=self.settings.retry_backoff_seconds,
        )
        destination = directory / self.store.bill_file_name(request.sequence_number)

        while not progress.finished:
            progress.start_attempt()
            try:
                await renderer.render(request, destination)
            except ReceiptRenderError as exc:
                progress.fail(str(exc))
                logger.error(
                    f"  Attempt {progress.attempts}/{progress.max_attempts} failed: {exc}"
                )
                if not progress.finished:
                    logger.info(f"  Retrying in {progress.next_backoff:g} seconds...")
                    await self.sleep(progress.next_backoff)
            else:
                progress.succeed()
                logger.info(f"Bill {request.sequence_number} generated successfully")

        return progress

    def _merge(self, result: GenerationResult) -> Path | None:
        """Merge successful bills; a merge failure leaves the single bills in place."""
        if not result.receipts:
            logger.warning("No bills were generated; nothing to merge")
            return None

        sources = [
            receipt.source_document_path
            for receipt in sorted(result.receipts, key=lambda r: r.sequence_number)
        ]
        try:
            return self.store.merge_files(
                sources, result.directory / self.store.merged_file_name()
            )
        except (MergeError, OSError) as exc:
            logger.warning(f"Could not merge PDFs: {exc}")
            logger.info("Individual bills are still available in the batch directory")
            return None
