"""Domain layer for Rx-Triage.

This module contains the record schemas and the risk-scoring logic.
All domain models are pure Python with no external dependencies beyond Pydantic.
"""

from .prescription_record import (
    PrescriptionRecord,
    RawField,
    RiskTier,
    ScoredRecord,
)
from .risk_engine import RiskEngine, decide_tier
from .scoring import HeuristicRiskModel
from .summary import RiskSummary, summarize
from .warning_rules import evaluate_warnings

__all__ = [
    "PrescriptionRecord",
    "RawField",
    "RiskTier",
    "ScoredRecord",
    "RiskEngine",
    "decide_tier",
    "HeuristicRiskModel",
    "RiskSummary",
    "summarize",
    "evaluate_warnings",
]
