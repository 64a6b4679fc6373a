"""
Error taxonomy for bill generation.

Domain functions raise these instead of logging; presentation is left to
the caller (API layer or orchestrator).

Design Decisions:
- One base class so the API layer can map any domain failure in one place
- Infeasibility errors are also ValueErrors (bad arguments to a pure function)
- Errors carry the structured data needed to build a user-facing message
"""


class FuelBillError(Exception):
    """Base class for all bill generation errors."""


class InputViolation(FuelBillError):
    """Raw request parameters failed validation."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = list(violations)
        super().__init__("; ".join(self.violations) or "Invalid input")


class InfeasibleDistribution(FuelBillError, ValueError):
    """The amount cannot be split under the requested constraints."""


class DistributionInvariantViolation(FuelBillError):
    """A generated amount fell outside (0, max]. Indicates a defect, not user error."""


class InfeasibleSchedule(FuelBillError, ValueError):
    """The date range cannot hold the requested dates at the requested spacing."""

    def __init__(self, message: str, required_days: int | None = None) -> None:
        self.required_days = required_days
        super().__init__(message)


class ScheduleGenerationExhausted(FuelBillError):
    """Random search gave up before finding enough spaced dates. Retryable."""

    def __init__(self, count: int, min_spacing_days: int, attempts: int) -> None:
        self.count = count
        self.min_spacing_days = min_spacing_days
        self.attempts = attempts
        super().__init__(
            f"Could not generate {count} unique dates with {min_spacing_days}-day "
            f"spacing in the given range after {attempts} attempts."
        )


class MergeError(FuelBillError):
    """Base class for PDF merge failures."""


class MergeEmptyInput(MergeError):
    """Merge was called with no documents."""

    def __init__(self) -> None:
        super().__init__("No documents to merge")


class MergeSourceUnreadable(MergeError):
    """One of the input documents could not be parsed."""

    def __init__(self, index: int, reason: str) -> None:
        self.index = index
        self.reason = reason
        super().__init__(f"Document at index {index} could not be read: {reason}")
