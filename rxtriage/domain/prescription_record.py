"""Prescription Record Schema Definitions.

This module defines the canonical data models for dispensing records:
the parsed PrescriptionRecord and the ScoredRecord the risk engine derives
from it.

Each field carries the CSV header it is read from as its alias, so a record
can be built directly from a header/value mapping and serialized back with
the same column names the review dashboard expects.

Architecture:
    - Pure domain models with zero infrastructure dependencies
    - Models are frozen: a record is created once per input line and never
      mutated; scoring produces a new ScoredRecord
    - Field validators run in "before" mode and implement parse-or-default,
      so constructing a record from raw cells never raises for bad values
"""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rxtriage.domain.utils import (
    blank_to_none,
    clean_cell,
    parse_finite_float,
    parse_flag,
    parse_float_or_default,
    parse_int_or_default,
)


class RiskTier(str, Enum):
    """Risk classification shown on the review dashboard."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass(frozen=True)
class RawField:
    """A header name paired with an untyped cell value."""
    header: str
    value: str


class PrescriptionRecord(BaseModel):
    """A single dispensing record after parsing, before scoring.

    Required fields always hold a value: text defaults to "", numbers to 0.
    Optional fields (prescriber_dea, refill_date, adherence_score, notes) are
    None when the cell is blank, and adherence_score is also None when the
    cell does not parse as a number.

    Parameters:
        patient_id: Patient identifier
        full_name: Patient full name
        date_of_birth: Date of birth as YYYY-MM-DD text
        gender: Patient gender as given in the source
        prescriber_id: Prescriber NPI
        prescriber_dea: Prescriber DEA registration number
        prescriber_name: Prescriber display name
        pharmacy_name: Dispensing pharmacy
        drug_name: Drug name
        drug_code: Drug code (NDC or local code)
        prescription_date: Prescription date as YYYY-MM-DD text
        dispense_date: Dispense date as YYYY-MM-DD text
        refill_date: Refill date as YYYY-MM-DD text
        days_supplied: Days of supply dispensed
        dosage_mg: Dosage in milligrams
        quantity: Dispensed unit count
        refill_number: Refill sequence number
        payment_type: Payment type (Cash, Insurance, Medicaid, Medicare, ...)
        pickup_method: Pickup method (In-person, Delivery, Third-party)
        pdmp_status: State PDMP match status (Matched, Unmatched, Not Available)
        overlapping_prescriptions: Whether overlapping prescriptions were reported
        adherence_score: Adherence score, 0-100
        notes: Free-text notes
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    patient_id: str = Field("", alias="Patient_ID")
    full_name: str = Field("", alias="Full_Name")
    date_of_birth: str = Field("", alias="DOB")
    gender: str = Field("", alias="Gender")
    prescriber_id: str = Field("", alias="Prescriber_NPI")
    prescriber_dea: Optional[str] = Field(None, alias="Prescriber_DEA")
    prescriber_name: str = Field("", alias="Prescriber_Name")
    pharmacy_name: str = Field("", alias="Pharmacy_Name")
    drug_name: str = Field("", alias="Drug_Name")
    drug_code: str = Field("", alias="Drug_Code")
    prescription_date: str = Field("", alias="Prescription_Date")
    dispense_date: str = Field("", alias="Dispense_Date")
    refill_date: Optional[str] = Field(None, alias="Refill_Date")
    days_supplied: int = Field(0, alias="Days_Supplied")
    dosage_mg: float = Field(0.0, alias="Dosage_mg")
    quantity: int = Field(0, alias="Quantity")
    refill_number: int = Field(0, alias="Refill_Number")
    payment_type: str = Field("", alias="Payment_Type")
    pickup_method: str = Field("", alias="Pickup_Method")
    pdmp_status: str = Field("", alias="State_PDMP_Status")
    overlapping_prescriptions: bool = Field(False, alias="Overlapping_Prescriptions")
    adherence_score: Optional[float] = Field(None, alias="Adherence_Score")
    notes: Optional[str] = Field(None, alias="Notes")

    @field_validator(
        "patient_id", "full_name", "date_of_birth", "gender",
        "prescriber_id", "prescriber_name", "pharmacy_name",
        "drug_name", "drug_code", "prescription_date", "dispense_date",
        "payment_type", "pickup_method", "pdmp_status",
        mode="before",
    )
    @classmethod
    def clean_text(cls, v: Any) -> str:
        return clean_cell(v)

    @field_validator("prescriber_dea", "refill_date", "notes", mode="before")
    @classmethod
    def clean_optional_text(cls, v: Any) -> Optional[str]:
        return blank_to_none(v)

    @field_validator("days_supplied", "quantity", "refill_number", mode="before")
    @classmethod
    def parse_count(cls, v: Any) -> int:
        """Integer cells default to 0 when they do not parse."""
        return parse_int_or_default(v)

    @field_validator("dosage_mg", mode="before")
    @classmethod
    def parse_dosage(cls, v: Any) -> float:
        return parse_float_or_default(v)

    @field_validator("adherence_score", mode="before")
    @classmethod
    def parse_adherence(cls, v: Any) -> Optional[float]:
        """Unparsable adherence is absent, not zero."""
        return parse_finite_float(v)

    @field_validator("overlapping_prescriptions", mode="before")
    @classmethod
    def parse_overlap_flag(cls, v: Any) -> bool:
        return parse_flag(v)

    @classmethod
    def csv_headers(cls) -> List[str]:
        """CSV header names recognized by the model, in declaration order."""
        return [field.alias for field in PrescriptionRecord.model_fields.values()]

    @classmethod
    def from_raw_fields(cls, fields: Iterable[RawField]) -> "PrescriptionRecord":
        """Build a record from header/value pairs.

        Headers are matched case-sensitively; unknown headers are ignored and
        missing ones leave the field at its default. When a header repeats,
        the first occurrence wins.
        """
        known = set(cls.csv_headers())
        data: Dict[str, str] = {}
        for raw in fields:
            if raw.header in known and raw.header not in data:
                data[raw.header] = raw.value
        return cls.model_validate(data)


RiskScore = Annotated[float, Field(ge=0.0, le=1.0)]
Confidence = Annotated[float, Field(ge=0.5, le=1.0)]


class RiskOutcome(BaseModel):
    """The four values scoring adds to a record, validated on their own."""

    model_config = ConfigDict(frozen=True)

    risk_score: RiskScore
    confidence: Confidence
    risk_tier: RiskTier
    warnings: tuple[str, ...] = ()


class ScoredRecord(PrescriptionRecord):
    """A PrescriptionRecord plus its risk classification.

    Parameters:
        risk_score: Weighted risk score in [0, 1]
        confidence: Model confidence in [0.5, 1]
        risk_tier: Final tier combining score and warning count
        warnings: Distinct warning labels in detection order
    """

    risk_score: RiskScore = Field(..., alias="Risk_Score")
    confidence: Confidence = Field(..., alias="AI_Confidence")
    risk_tier: RiskTier = Field(..., alias="Risk_Level")
    warnings: tuple[str, ...] = Field(default_factory=tuple, alias="Flagged_Warnings")

    @classmethod
    def from_record(
        cls,
        record: PrescriptionRecord,
        *,
        risk_score: float,
        confidence: float,
        risk_tier: RiskTier,
        warnings: Iterable[str],
    ) -> "ScoredRecord":
        """Derive a scored record; the source record is left untouched.

        Only the scoring outcome is validated. Parsed fields are copied
        without re-running the cell cleaners, which are not idempotent for
        doubly quoted text.
        """
        outcome = RiskOutcome(
            risk_score=risk_score,
            confidence=confidence,
            risk_tier=risk_tier,
            warnings=tuple(warnings),
        )
        return cls.model_construct(**record.model_dump(), **outcome.model_dump())

    def to_export_dict(self) -> Dict[str, Any]:
        """Serialize with CSV header names, as consumed by the dashboard."""
        return self.model_dump(mode="json", by_alias=True)
