"""
Bill generation endpoints.

Handles batch generation requests and download of the produced PDFs.
"""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse, JSONResponse

from fuelbill.api.schemas import (
    BillResponse,
    ErrorResponse,
    FailedBillResponse,
    GenerateBillsRequest,
    GenerateBillsResponse,
)
from fuelbill.config import get_settings
from fuelbill.domain.errors import FuelBillError, InputViolation, ScheduleGenerationExhausted
from fuelbill.domain.schedule import format_date_for_display, format_time_for_display
from fuelbill.domain.validation import ensure_valid
from fuelbill.infrastructure.storage import ReceiptStore
from fuelbill.services.browser import PlaywrightReceiptRenderer
from fuelbill.services.generator import BillGenerator, GenerationFailed, GenerationResult

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bills"])


# Service instances (overridden via app.dependency_overrides in tests)
_receipt_store: ReceiptStore | None = None
_bill_generator: BillGenerator | None = None


def get_receipt_store() -> ReceiptStore:
    """Get or create the receipt store for the configured download directory."""
    global _receipt_store
    if _receipt_store is None:
        _receipt_store = ReceiptStore(get_settings().download_dir)
    return _receipt_store


def get_bill_generator(
    store: Annotated[ReceiptStore, Depends(get_receipt_store)],
) -> BillGenerator:
    """Get or create the bill generator instance."""
    global _bill_generator
    if _bill_generator is None:
        settings = get_settings()
        _bill_generator = BillGenerator(
            settings=settings,
            store=store,
            renderer_factory=lambda: PlaywrightReceiptRenderer(settings),
        )
    return _bill_generator


def _error(
    status_code: int,
    error: str,
    errors: list[str] | None = None,
    detail: dict[str, Any] | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=error, errors=errors or [], detail=detail)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _to_response(result: GenerationResult) -> GenerateBillsResponse:
    bills = [
        BillResponse(
            bill_number=receipt.sequence_number,
            file_name=receipt.source_document_path.name,
            amount=str(receipt.amount),
            date=format_date_for_display(receipt.slot.date),
            time=format_time_for_display(receipt.slot.time),
            station_name=receipt.station_name,
        )
        for receipt in result.receipts
    ]
    failed = [
        FailedBillResponse(
            bill_number=unit.request.sequence_number,
            attempts=unit.attempts,
            error=unit.last_error or "",
        )
        for unit in result.failed_units
    ]
    return GenerateBillsResponse(
        batch_id=result.batch_id,
        bills_generated=len(bills),
        bills=bills,
        failed_bills=failed,
        download_directory=str(result.directory),
        merged_pdf=result.merged_path.name if result.merged_path else None,
    )


@router.post(
    "/generate-bills",
    response_model=GenerateBillsResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Validation failed"},
        409: {"model": ErrorResponse, "description": "Date search exhausted; retry or widen the range"},
        502: {"model": ErrorResponse, "description": "Bill form automation failed"},
        500: {"model": ErrorResponse, "description": "Generation error"},
    },
)
async def generate_bills(
    request: GenerateBillsRequest,
    generator: Annotated[BillGenerator, Depends(get_bill_generator)],
) -> GenerateBillsResponse | JSONResponse:
    """
    Validate the form and generate a batch of bills.

    **Process:**
    1. Validate every form field, reporting all problems at once
    2. Split the total amount and schedule the bill dates
    3. Fill the online bill form once per bill, retrying failures
    4. Merge the bills into one PDF
    """
    form = request.form_values()
    logger.info(f"Received bill generation request: {form}")

    try:
        params = ensure_valid(form, generator.settings.min_days_apart)
    except InputViolation as exc:
        return _error(status.HTTP_400_BAD_REQUEST, "Validation failed", exc.violations)

    try:
        result = await generator.generate(params, allow_partial=request.allow_partial)
    except ScheduleGenerationExhausted as exc:
        return _error(
            status.HTTP_409_CONFLICT,
            str(exc),
            detail={"attempts": exc.attempts, "retryable": True},
        )
    except GenerationFailed as exc:
        return _error(
            status.HTTP_502_BAD_GATEWAY,
            str(exc),
            detail={"billNumber": exc.sequence_number, "attempts": exc.attempts},
        )
    except FuelBillError as exc:
        logger.exception("Bill generation failed")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    return _to_response(result)


@router.get(
    "/bills/{batch_id}/{file_name}",
    response_class=FileResponse,
    responses={404: {"description": "Bill not found"}},
)
async def download_bill(
    batch_id: str,
    file_name: str,
    store: Annotated[ReceiptStore, Depends(get_receipt_store)],
) -> FileResponse:
    """Download a single bill or the merged PDF of a batch."""
    try:
        path = store.resolve(batch_id, file_name)
    except FileNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Bill not found: {file_name}",
        )
    return FileResponse(path, media_type="application/pdf", filename=path.name)
