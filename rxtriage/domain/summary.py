"""Batch summary of scored records.

Aggregates a scored batch into the figures the review dashboard shows above
its table: tier counts, how often each warning fired, and the most common
drugs with their average risk score.
"""

from collections import Counter
from typing import Dict, List, Sequence

from pydantic import BaseModel, Field

from rxtriage.domain.prescription_record import RiskTier, ScoredRecord

TOP_DRUG_LIMIT = 5


class DrugRiskStat(BaseModel):
    """Usage and mean risk for one drug name."""
    name: str
    count: int
    avg_risk: float


class RiskSummary(BaseModel):
    """Aggregate view of a scored batch.

    Attributes:
        total_records: Number of scored records
        high_risk: Records in the High tier
        medium_risk: Records in the Medium tier
        low_risk: Records in the Low tier
        records_with_warnings: Records with at least one warning
        flagged_warnings: Occurrence count per warning label, most common first
        top_drugs: Most dispensed drugs, by record count
    """
    total_records: int = 0
    high_risk: int = 0
    medium_risk: int = 0
    low_risk: int = 0
    records_with_warnings: int = 0
    flagged_warnings: Dict[str, int] = Field(default_factory=dict)
    top_drugs: List[DrugRiskStat] = Field(default_factory=list)


def summarize(scored: Sequence[ScoredRecord], top_drugs: int = TOP_DRUG_LIMIT) -> RiskSummary:
    """Build a RiskSummary for a scored batch.

    Drug ties are broken by first appearance in the batch.
    """
    tiers = Counter(record.risk_tier for record in scored)
    warning_counts: Counter = Counter()
    drug_counts: Counter = Counter()
    drug_risk: Dict[str, float] = {}

    for record in scored:
        warning_counts.update(record.warnings)
        drug_counts[record.drug_name] += 1
        drug_risk[record.drug_name] = drug_risk.get(record.drug_name, 0.0) + record.risk_score

    return RiskSummary(
        total_records=len(scored),
        high_risk=tiers[RiskTier.HIGH],
        medium_risk=tiers[RiskTier.MEDIUM],
        low_risk=tiers[RiskTier.LOW],
        records_with_warnings=sum(1 for record in scored if record.warnings),
        flagged_warnings=dict(warning_counts.most_common()),
        top_drugs=[
            DrugRiskStat(name=name, count=count, avg_risk=drug_risk[name] / count)
            for name, count in drug_counts.most_common(top_drugs)
        ],
    )
