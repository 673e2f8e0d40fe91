"""Domain Ports - Abstract Contracts and Error Taxonomy.

This module defines the Port interfaces (abstract contracts) the Domain Core
depends on, the Result value object used to report outcomes without raising,
and the ingestion exception hierarchy.

Architecture:
    - Pure abstract interfaces with zero infrastructure dependencies
    - Ingesters implement IngestionPort; risk models implement RiskModelPort
    - The RiskEngine depends on RiskModelPort only, so the deterministic rule
      model and any future external classifier are interchangeable
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, List, Optional, TypeVar, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from rxtriage.domain.prescription_record import PrescriptionRecord

# Type variable for Result generic
T = TypeVar('T')


# ============================================================================
# Result Type for Success/Failure Communication
# ============================================================================

@dataclass(frozen=True)
class Result(Generic[T]):
    """Result type for communicating success or failure without exceptions.

    Attributes:
        success: True if the operation succeeded, False otherwise
        value: The successful result value (only present if success=True)
        error: Error message (only present if success=False)
        error_type: Type of error (e.g. "OSError")
        error_details: Additional error context (path, format, etc.)

    Example:
        ```python
        result = export_scored_records(scored, "out/report.json")
        if result.is_failure():
            logger.error(result.error, extra=result.error_details)
        ```
    """

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    error_details: Optional[dict] = None

    @classmethod
    def success_result(cls, value: T) -> 'Result[T]':
        """Create a successful result.

        Parameters:
            value: The successful result value

        Returns:
            Result: Success result with the value
        """
        return cls(success=True, value=value)

    @classmethod
    def failure_result(
        cls,
        error: Union[str, Exception],
        error_type: Optional[str] = None,
        error_details: Optional[dict] = None
    ) -> 'Result[T]':
        """Create a failure result.

        Parameters:
            error: Error message or exception
            error_type: Type of error; derived from the exception when omitted
            error_details: Additional context

        Returns:
            Result: Failure result with error information
        """
        error_message = str(error) if isinstance(error, Exception) else error
        error_type_name = error_type or (type(error).__name__ if isinstance(error, Exception) else "UnknownError")

        return cls(
            success=False,
            value=None,
            error=error_message,
            error_type=error_type_name,
            error_details=error_details or {}
        )

    def is_success(self) -> bool:
        """Check if result is successful."""
        return self.success

    def is_failure(self) -> bool:
        """Check if result is a failure."""
        return not self.success


# ============================================================================
# Custom Exception Hierarchy
# ============================================================================

class IngestionError(Exception):
    """Base exception for all ingestion-related errors.

    Attributes:
        source: The source identifier involved, when known
    """

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class FormatError(IngestionError):
    """Raised when a batch has no data rows.

    A batch needs a header line and at least one data line (two non-empty
    lines). This is the only batch-level failure of the parser; problems with
    individual cells degrade to field defaults instead.

    Attributes:
        line_count: Number of non-empty lines found
    """

    def __init__(self, message: str, source: Optional[str] = None, line_count: int = 0):
        super().__init__(message, source=source)
        self.line_count = line_count


class InputTooLargeError(IngestionError):
    """Raised when the input exceeds the configured size limit.

    Attributes:
        size: Input size in bytes
        limit: Configured maximum in bytes
    """

    def __init__(self, message: str, size: int, limit: int, source: Optional[str] = None):
        super().__init__(message, source=source)
        self.size = size
        self.limit = limit


class SourceNotFoundError(IngestionError):
    """Raised when the source file cannot be found or read."""


class UnsupportedSourceError(IngestionError):
    """Raised when no adapter handles the source format.

    Attributes:
        adapter: The adapter that rejected the source, if any
    """

    def __init__(self, message: str, source: Optional[str] = None, adapter: Optional[str] = None):
        super().__init__(message, source=source)
        self.adapter = adapter


# ============================================================================
# Ports
# ============================================================================

class IngestionPort(ABC):
    """Abstract contract for record ingestion adapters.

    Adapters turn raw input into a fully materialized list of
    PrescriptionRecord objects. The whole input is read before scoring starts,
    since downstream consumers need the complete batch anyway.
    """

    @abstractmethod
    def parse(self, raw_text: str, source: str = "<text>") -> List['PrescriptionRecord']:
        """Parse raw text into records.

        Parameters:
            raw_text: Full input text
            source: Label used in log messages and errors

        Raises:
            FormatError: If the text holds no data rows
        """

    @abstractmethod
    def ingest(self, source: str) -> List['PrescriptionRecord']:
        """Read a source (file path) and parse it into records.

        Raises:
            SourceNotFoundError: If the source does not exist
            FormatError: If the source holds no data rows
            InputTooLargeError: If the source exceeds the size limit
        """

    @abstractmethod
    def can_ingest(self, source: str) -> bool:
        """Check if this adapter can handle the given source."""

    def get_source_info(self, source: str) -> Optional[dict]:
        """Get metadata about the source (optional, adapter-specific).

        Returns None by default; adapters may override.
        """
        return None


class RiskModelPort(ABC):
    """Capability interface for the weighted risk model.

    A risk model maps one record to a RiskAssessment (score, confidence and
    the labels of the factors that fired). It must be a pure function of the
    record: no shared mutable state, no I/O. The rule-based
    HeuristicRiskModel is the default implementation; an external classifier
    can be plugged in by implementing this port and passing it to RiskEngine.
    """

    @abstractmethod
    def score(self, record: 'PrescriptionRecord') -> 'RiskAssessment':
        """Score a single record."""


@dataclass(frozen=True)
class RiskAssessment:
    """Output of a risk model for one record.

    Attributes:
        score: Weighted risk score, clamped to [0, 1]
        confidence: Model confidence, clamped to [0.5, 1]
        factors: Labels of the scoring factors that fired, in evaluation order
    """
    score: float
    confidence: float
    factors: tuple = ()
