"""Risk Engine - combines the weighted score and warning flags into a tier.

The engine maps every PrescriptionRecord to a ScoredRecord. Each record is
scored independently by a pure function, so a batch can be evaluated
sequentially or fanned out across worker threads without coordination; output
order always matches input order.

Architecture:
    - Depends on RiskModelPort for the weighted score, injected at
      construction (HeuristicRiskModel by default)
    - Warning flags come from warning_rules.evaluate_warnings, independently
      of the model
    - decide_tier is the only place the two signals meet
"""

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence

from rxtriage.domain.ports import RiskModelPort
from rxtriage.domain.prescription_record import PrescriptionRecord, RiskTier, ScoredRecord
from rxtriage.domain.scoring import HeuristicRiskModel
from rxtriage.domain.warning_rules import evaluate_warnings

logger = logging.getLogger(__name__)

HIGH_SCORE_THRESHOLD = 0.75
MEDIUM_SCORE_THRESHOLD = 0.25
HIGH_WARNING_THRESHOLD = 4
MEDIUM_WARNING_THRESHOLD = 0


def decide_tier(score: float, warning_count: int) -> RiskTier:
    """Decide the risk tier from the weighted score and the warning count.

    Either signal alone can escalate the tier: the engine prefers flagging a
    record over missing risk.

    Returns:
        RiskTier.HIGH if score > 0.75 or more than 4 warnings,
        RiskTier.MEDIUM if score > 0.25 or any warning,
        RiskTier.LOW otherwise
    """
    if score > HIGH_SCORE_THRESHOLD or warning_count > HIGH_WARNING_THRESHOLD:
        return RiskTier.HIGH
    if score > MEDIUM_SCORE_THRESHOLD or warning_count > MEDIUM_WARNING_THRESHOLD:
        return RiskTier.MEDIUM
    return RiskTier.LOW


class RiskEngine:
    """Scores prescription records.

    Parameters:
        model: Weighted risk model; defaults to HeuristicRiskModel(seed=seed)
        seed: Seed for the default model's smoothing; ignored when a model
              is supplied
        max_workers: Worker threads for batch scoring; 1 scores sequentially

    Example:
        ```python
        engine = RiskEngine(seed=7)
        scored = engine.score(records)
        ```
    """

    def __init__(
        self,
        model: Optional[RiskModelPort] = None,
        *,
        seed: Optional[int] = None,
        max_workers: int = 1,
    ):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.model = model or HeuristicRiskModel(seed=seed)
        self.max_workers = max_workers

    def with_seed(self, seed: Optional[int]) -> "RiskEngine":
        """Return an engine with the same configuration and a new smoothing seed.

        Models other than HeuristicRiskModel take no seed; for those the
        engine itself is returned.
        """
        if not isinstance(self.model, HeuristicRiskModel):
            logger.debug(f"{type(self.model).__name__} takes no seed; ignoring seed={seed}")
            return self
        return RiskEngine(self.model.with_seed(seed), max_workers=self.max_workers)

    def score_record(self, record: PrescriptionRecord) -> ScoredRecord:
        """Score one record.

        Raises:
            TypeError: If `record` is not a PrescriptionRecord
        """
        if not isinstance(record, PrescriptionRecord) or isinstance(record, ScoredRecord):
            raise TypeError(
                f"Expected PrescriptionRecord, got {type(record).__name__}"
            )

        assessment = self.model.score(record)
        warnings = evaluate_warnings(record)
        tier = decide_tier(assessment.score, len(warnings))

        return ScoredRecord.from_record(
            record,
            risk_score=assessment.score,
            confidence=assessment.confidence,
            risk_tier=tier,
            warnings=warnings,
        )

    def score(self, records: Iterable[PrescriptionRecord]) -> List[ScoredRecord]:
        """Score a batch, preserving input order.

        A contract violation on any record (wrong type) fails the whole batch.
        """
        batch: Sequence[PrescriptionRecord] = list(records)

        if self.max_workers > 1 and len(batch) > 1:
            with ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix="risk-scorer",
            ) as executor:
                scored = list(executor.map(self.score_record, batch))
        else:
            scored = [self.score_record(record) for record in batch]

        tiers = Counter(record.risk_tier for record in scored)
        logger.info(
            f"Scored {len(scored)} records: "
            f"{tiers[RiskTier.HIGH]} high, {tiers[RiskTier.MEDIUM]} medium, "
            f"{tiers[RiskTier.LOW]} low"
        )
        return scored
