"""Rule-based warning flags.

Each rule inspects one record and contributes at most one label from a fixed
catalog. Thresholds here are coarser than, and independent of, the weighted
score thresholds in scoring.py: a record can collect warnings that escalate
its tier even when its score alone would not, and vice versa.
"""

from typing import Callable, Optional, Tuple

from rxtriage.domain.prescription_record import PrescriptionRecord
from rxtriage.domain.scoring import is_high_risk_drug, refill_interval_days

# Label catalog
EARLY_REFILL = "Early Refill Attempt"
EXTREME_DOSAGE = "Extreme Dosage Prescription"
HIGH_DOSAGE = "High Dosage Prescription"
ELEVATED_DOSAGE = "Elevated Dosage Prescription"
EXCESSIVE_QUANTITY = "Excessive Quantity"
HIGH_QUANTITY = "High Quantity"
SHORT_SUPPLY_HIGH_QUANTITY = "Short Supply High Quantity"
EXTENDED_DAYS_SUPPLY = "Extended Days Supply"
OVERLAPPING_PRESCRIPTIONS = "Overlapping Prescriptions"
CASH_HIGH_QUANTITY = "Cash Payment High Quantity"
CASH_HIGH_DOSAGE = "Cash Payment High Dosage"
EXCESSIVE_REFILLS = "Excessive Refills"
MULTIPLE_REFILLS = "Multiple Refills"
PDMP_UNMATCHED = "PDMP Status Unmatched"
PDMP_NOT_AVAILABLE = "PDMP Data Not Available"
VERY_LOW_ADHERENCE = "Very Low Adherence Score"
LOW_ADHERENCE = "Low Adherence Score"
PERFECT_ADHERENCE = "Suspiciously Perfect Adherence"
THIRD_PARTY_HIGH_QUANTITY = "Third-party Pickup High Quantity"
THIRD_PARTY_MULTIPLE_REFILLS = "Third-party Pickup Multiple Refills"
HIGH_DOSE_CONTROLLED = "High-Dose Controlled Substance"

WARNING_CATALOG = (
    EARLY_REFILL,
    EXTREME_DOSAGE,
    HIGH_DOSAGE,
    ELEVATED_DOSAGE,
    EXCESSIVE_QUANTITY,
    HIGH_QUANTITY,
    SHORT_SUPPLY_HIGH_QUANTITY,
    EXTENDED_DAYS_SUPPLY,
    OVERLAPPING_PRESCRIPTIONS,
    CASH_HIGH_QUANTITY,
    CASH_HIGH_DOSAGE,
    EXCESSIVE_REFILLS,
    MULTIPLE_REFILLS,
    PDMP_UNMATCHED,
    PDMP_NOT_AVAILABLE,
    VERY_LOW_ADHERENCE,
    LOW_ADHERENCE,
    PERFECT_ADHERENCE,
    THIRD_PARTY_HIGH_QUANTITY,
    THIRD_PARTY_MULTIPLE_REFILLS,
    HIGH_DOSE_CONTROLLED,
)

WarningRule = Callable[[PrescriptionRecord], Optional[str]]


def early_refill(record: PrescriptionRecord) -> Optional[str]:
    interval = refill_interval_days(record)
    if interval is None or record.days_supplied <= 0:
        return None
    if interval < record.days_supplied * 0.75:
        return EARLY_REFILL
    return None


def dosage_band(record: PrescriptionRecord) -> Optional[str]:
    if record.dosage_mg > 120:
        return EXTREME_DOSAGE
    if record.dosage_mg > 90:
        return HIGH_DOSAGE
    if record.dosage_mg > 60:
        return ELEVATED_DOSAGE
    return None


def quantity_band(record: PrescriptionRecord) -> Optional[str]:
    if record.quantity > 180:
        return EXCESSIVE_QUANTITY
    if record.quantity > 120:
        return HIGH_QUANTITY
    return None


def supply_duration(record: PrescriptionRecord) -> Optional[str]:
    if record.days_supplied < 15 and record.quantity > 60:
        return SHORT_SUPPLY_HIGH_QUANTITY
    if record.days_supplied > 90:
        return EXTENDED_DAYS_SUPPLY
    return None


def overlapping(record: PrescriptionRecord) -> Optional[str]:
    return OVERLAPPING_PRESCRIPTIONS if record.overlapping_prescriptions else None


def cash_payment(record: PrescriptionRecord) -> Optional[str]:
    if record.payment_type != "Cash":
        return None
    if record.quantity > 90:
        return CASH_HIGH_QUANTITY
    if record.dosage_mg > 90:
        return CASH_HIGH_DOSAGE
    return None


def refill_band(record: PrescriptionRecord) -> Optional[str]:
    if record.refill_number > 6:
        return EXCESSIVE_REFILLS
    if record.refill_number > 4:
        return MULTIPLE_REFILLS
    return None


def pdmp_status(record: PrescriptionRecord) -> Optional[str]:
    if record.pdmp_status == "Unmatched":
        return PDMP_UNMATCHED
    if record.pdmp_status == "Not Available":
        return PDMP_NOT_AVAILABLE
    return None


def adherence_band(record: PrescriptionRecord) -> Optional[str]:
    score = record.adherence_score
    if score is None:
        return None
    if score < 50:
        return VERY_LOW_ADHERENCE
    if score < 60:
        return LOW_ADHERENCE
    if score > 98:
        return PERFECT_ADHERENCE
    return None


def third_party_pickup(record: PrescriptionRecord) -> Optional[str]:
    if record.pickup_method != "Third-party":
        return None
    if record.quantity > 90:
        return THIRD_PARTY_HIGH_QUANTITY
    if record.refill_number > 3:
        return THIRD_PARTY_MULTIPLE_REFILLS
    return None


def controlled_substance(record: PrescriptionRecord) -> Optional[str]:
    if is_high_risk_drug(record.drug_name) and record.dosage_mg > 80:
        return HIGH_DOSE_CONTROLLED
    return None


# Evaluation order is the order labels appear in a record's warnings.
WARNING_RULES: Tuple[WarningRule, ...] = (
    early_refill,
    dosage_band,
    quantity_band,
    supply_duration,
    overlapping,
    cash_payment,
    refill_band,
    pdmp_status,
    adherence_band,
    third_party_pickup,
    controlled_substance,
)


def evaluate_warnings(record: PrescriptionRecord) -> Tuple[str, ...]:
    """Run every rule against the record and collect the labels that fired."""
    labels = []
    for rule in WARNING_RULES:
        label = rule(record)
        if label is not None:
            labels.append(label)
    return tuple(labels)
