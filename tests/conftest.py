"""Shared fixtures for the Rx-Triage test suite."""

from datetime import date

import pytest

from rxtriage.domain.prescription_record import PrescriptionRecord
from rxtriage.domain.risk_engine import RiskEngine
from rxtriage.domain.scoring import HeuristicRiskModel

REFERENCE_DATE = date(2026, 1, 1)

_CSV_HEADER = (
    "Patient_ID,Full_Name,DOB,Gender,Prescriber_NPI,Prescriber_DEA,Prescriber_Name,"
    "Pharmacy_Name,Drug_Name,Drug_Code,Prescription_Date,Dispense_Date,Refill_Date,"
    "Days_Supplied,Dosage_mg,Quantity,Refill_Number,Payment_Type,Pickup_Method,"
    "State_PDMP_Status,Overlapping_Prescriptions,Adherence_Score,Notes"
)


@pytest.fixture
def make_record():
    """Factory for records that trigger no scoring factor and no warning.

    Days supplied is the 30-day standard, quantity and dosage are zero,
    payment is insurance, pickup is in person and PDMP is matched. Pass
    keyword overrides (attribute names) to switch individual rules on.
    """
    def _make(**overrides) -> PrescriptionRecord:
        fields = {
            "patient_id": "P001",
            "full_name": "Jane Doe",
            "drug_name": "Ibuprofen",
            "prescription_date": "2025-01-01",
            "dispense_date": "2025-01-01",
            "days_supplied": 30,
            "dosage_mg": 0,
            "quantity": 0,
            "refill_number": 0,
            "payment_type": "Insurance",
            "pickup_method": "In-person",
            "pdmp_status": "Matched",
        }
        fields.update(overrides)
        return PrescriptionRecord(**fields)

    return _make


@pytest.fixture
def flat_model():
    """Heuristic model with smoothing disabled and a fixed reference date."""
    return HeuristicRiskModel(smoothing=0.0, reference_date=REFERENCE_DATE)


@pytest.fixture
def flat_engine(flat_model):
    """Deterministic engine for boundary checks."""
    return RiskEngine(flat_model)


@pytest.fixture
def csv_row_text():
    """A well-formed CSV data row matching CSV_HEADER."""
    return (
        "P001,Jane Doe,1980-04-12,F,1234567890,AB1234567,Dr. Smith,Main St Pharmacy,"
        "Oxycodone,00406-0552,2025-01-01,2025-01-02,2025-01-20,30,40.5,60,2,Insurance,"
        "In-person,Matched,FALSE,88.5,Stable dose"
    )


@pytest.fixture
def high_risk_row_text():
    """A data row that should land in the High tier on every signal."""
    return (
        "P002,John Roe,1990-02-02,M,9876543210,,Dr. Jones,Corner Pharmacy,"
        "Fentanyl,00000-0001,2025-02-01,2025-02-01,,30,150,200,7,Cash,"
        "In-person,Unmatched,TRUE,,"
    )


@pytest.fixture
def csv_header():
    """Header line naming every recognized column."""
    return _CSV_HEADER


@pytest.fixture
def csv_text(csv_header, csv_row_text, high_risk_row_text):
    """A two-record export: one moderate record, one high-risk record."""
    return f"{csv_header}\n{csv_row_text}\n{high_risk_row_text}\n"
