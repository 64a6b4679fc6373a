"""
Pydantic schemas for API request/response validation.

These schemas define the contract between the bill form and the backend.
Field names are camelCase on the wire. All monetary values use strings to
avoid floating point issues.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exposing camelCase field names on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Request Schemas
# =============================================================================

class GenerateBillsRequest(CamelModel):
    """
    Request to generate a batch of bills.

    Form fields are deliberately untyped: raw values go to the domain
    validator as submitted, so it can report every problem in one response.
    """
    station_name: Any = None
    fuel_rate: Any = None
    template: Any = None
    total_amount: Any = None
    number_of_bills: Any = None
    max_amount_per_bill: Any = None
    start_date: Any = None
    end_date: Any = None
    allow_partial: bool = Field(
        default=False,
        description="Merge and return whatever succeeded when a bill exhausts its retries",
    )

    def form_values(self) -> dict[str, Any]:
        """Raw form values keyed by their wire names."""
        return self.model_dump(by_alias=True, exclude={"allow_partial"})


# =============================================================================
# Response Schemas
# =============================================================================

class BillResponse(CamelModel):
    """A single generated bill."""
    bill_number: int
    file_name: str
    amount: str
    date: str  # DD/MM/YYYY
    time: str  # 12-hour clock
    station_name: str


class FailedBillResponse(CamelModel):
    """A bill that exhausted its retries."""
    bill_number: int
    attempts: int
    error: str


class GenerateBillsResponse(CamelModel):
    """Response from bill generation."""
    success: bool = True
    batch_id: str
    bills_generated: int
    bills: list[BillResponse]
    failed_bills: list[FailedBillResponse] = []
    download_directory: str
    merged_pdf: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    version: str
    timestamp: datetime


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    errors: list[str] = []
    detail: dict[str, Any] | None = None
