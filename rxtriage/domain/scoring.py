"""Weighted Risk Scoring Model.

HeuristicRiskModel is the default RiskModelPort implementation: a weighted sum
of rule contributions over one record, plus a bounded random perturbation that
emulates model variance. Its thresholds are deliberately independent of the
warning rules in warning_rules.py; the two signals are combined only at tier
decision time.

Determinism:
    The perturbation for a record is drawn from a generator seeded with the
    model seed and the record's content. The output for a record is therefore
    a pure function of (seed, record): identical across calls, batch orders
    and worker threads. With seed=None each call draws fresh entropy.
"""

import logging
import random
from datetime import date
from typing import List, Optional

from rxtriage.domain.ports import RiskAssessment, RiskModelPort
from rxtriage.domain.prescription_record import PrescriptionRecord
from rxtriage.domain.utils import clamp, parse_iso_date

logger = logging.getLogger(__name__)

HIGH_RISK_DRUGS = frozenset({"oxycodone", "fentanyl", "morphine", "hydrocodone"})

BASE_CONFIDENCE = 0.8
DEFAULT_SMOOTHING = 0.04
STANDARD_DAYS_SUPPLY = 30
QUANTITY_CAP = 180


def is_high_risk_drug(drug_name: str) -> bool:
    """Match the first word of the drug name against the high-risk set.

    Matching is case-insensitive and ignores strength suffixes, so
    "OXYCODONE" and "Oxycodone 10mg" both match.
    """
    words = drug_name.split()
    return bool(words) and words[0].lower() in HIGH_RISK_DRUGS


def refill_interval_days(record: PrescriptionRecord) -> Optional[int]:
    """Whole days between prescription and refill, if both dates parse."""
    prescribed = parse_iso_date(record.prescription_date)
    refilled = parse_iso_date(record.refill_date)
    if prescribed is None or refilled is None:
        return None
    return (refilled - prescribed).days


def age_in_years(record: PrescriptionRecord, reference: date) -> Optional[int]:
    """Year difference between the reference date and date of birth."""
    born = parse_iso_date(record.date_of_birth)
    if born is None:
        return None
    return reference.year - born.year


class HeuristicRiskModel(RiskModelPort):
    """Rule-weighted risk model with seeded smoothing.

    Parameters:
        seed: Seed for the smoothing perturbation. None draws fresh entropy
              on every call (non-reproducible).
        smoothing: Half-width of the uniform perturbation; 0 disables it.
        reference_date: Date used to derive patient age; defaults to today
                        at call time.

    Example:
        ```python
        model = HeuristicRiskModel(seed=42)
        assessment = model.score(record)
        assessment.score, assessment.confidence, assessment.factors
        ```
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        smoothing: float = DEFAULT_SMOOTHING,
        reference_date: Optional[date] = None,
    ):
        if smoothing < 0:
            raise ValueError(f"smoothing must be non-negative, got {smoothing}")
        self.seed = seed
        self.smoothing = smoothing
        self.reference_date = reference_date

    def with_seed(self, seed: Optional[int]) -> "HeuristicRiskModel":
        """Return a copy of this model that draws its smoothing from `seed`."""
        return HeuristicRiskModel(
            seed=seed,
            smoothing=self.smoothing,
            reference_date=self.reference_date,
        )

    def score(self, record: PrescriptionRecord) -> RiskAssessment:
        score = 0.0
        confidence = BASE_CONFIDENCE
        factors: List[str] = []

        if record.dosage_mg > 120:
            score += 0.4
            factors.append("dosage_above_120mg")
        elif record.dosage_mg > 80:
            score += 0.3
            factors.append("dosage_above_80mg")
        elif record.dosage_mg > 50:
            score += 0.2
            factors.append("dosage_above_50mg")

        if record.quantity > 0:
            score += min(record.quantity / QUANTITY_CAP, 1.0) * 0.25
            factors.append("quantity")

        deviation = abs(record.days_supplied - STANDARD_DAYS_SUPPLY) / STANDARD_DAYS_SUPPLY
        if deviation > 0.5:
            score += 0.15
            factors.append("days_supply_deviation")

        if record.payment_type == "Cash":
            score += 0.2
            confidence -= 0.05
            factors.append("cash_payment")
        elif record.payment_type == "Medicaid":
            score += 0.05
            factors.append("medicaid_payment")

        if record.refill_number > 5:
            score += 0.15
            factors.append("refills_above_5")
        elif record.refill_number > 3:
            score += 0.08
            factors.append("refills_above_3")

        interval = refill_interval_days(record)
        if interval is not None and record.days_supplied != 0:
            ratio = interval / record.days_supplied
            if ratio < 0.7:
                score += 0.25
                factors.append("early_refill")
            elif ratio < 0.8:
                score += 0.15
                factors.append("slightly_early_refill")

        if record.overlapping_prescriptions:
            score += 0.25
            confidence += 0.1
            factors.append("overlapping_prescriptions")

        if record.pdmp_status == "Unmatched":
            score += 0.2
            factors.append("pdmp_unmatched")
        elif record.pdmp_status == "Not Available":
            score += 0.1
            confidence -= 0.05
            factors.append("pdmp_not_available")

        if record.adherence_score is not None:
            if record.adherence_score < 50:
                score += 0.15
                factors.append("adherence_below_50")
            elif record.adherence_score < 70:
                score += 0.1
                factors.append("adherence_below_70")
            elif record.adherence_score > 95:
                # perfect adherence is itself suspicious
                score += 0.05
                factors.append("adherence_above_95")

        if record.pickup_method == "Third-party":
            score += 0.1
            factors.append("third_party_pickup")
        elif record.pickup_method == "Delivery":
            score += 0.05
            factors.append("delivery_pickup")

        if is_high_risk_drug(record.drug_name):
            score += 0.1
            factors.append("high_risk_drug")

        age = age_in_years(record, self.reference_date or date.today())
        if age is not None and (age < 25 or age > 75):
            score += 0.05
            factors.append("age_extreme")

        if len(factors) > 5:
            confidence += 0.1
        elif len(factors) < 2:
            confidence -= 0.1

        score += self._perturbation(record)

        return RiskAssessment(
            score=clamp(score, 0.0, 1.0),
            confidence=clamp(confidence, 0.5, 1.0),
            factors=tuple(factors),
        )

    def _perturbation(self, record: PrescriptionRecord) -> float:
        if self.smoothing == 0:
            return 0.0
        if self.seed is None:
            rng = random.Random()
        else:
            rng = random.Random(f"{self.seed}:{record.model_dump_json()}")
        return rng.uniform(-self.smoothing, self.smoothing)
