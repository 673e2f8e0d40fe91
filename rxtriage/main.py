"""Pipeline entry points for Rx-Triage.

This module wires the stages together: ingestion adapter → RiskEngine →
batch summary. Parsing completes before scoring starts; scoring is a pure
per-record map.

Architecture:
    - Adapters are selected automatically based on source format
    - The risk engine is built from settings unless one is injected
    - Surfaces (CLI, HTTP API) call process_file / process_text
"""

import logging
import time
from dataclasses import dataclass
from typing import List, Optional

from rxtriage.adapters.ingesters import CSVIngester, get_adapter
from rxtriage.domain.ports import IngestionPort
from rxtriage.domain.prescription_record import ScoredRecord
from rxtriage.domain.risk_engine import RiskEngine
from rxtriage.domain.scoring import HeuristicRiskModel
from rxtriage.domain.summary import RiskSummary, summarize
from rxtriage.infrastructure.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of one pipeline run.

    Attributes:
        source: Input identifier
        records: Scored records in input order
        summary: Batch summary
        elapsed_seconds: Wall-clock time for parse + score
    """
    source: str
    records: List[ScoredRecord]
    summary: RiskSummary
    elapsed_seconds: float


def create_risk_engine(
    seed: Optional[int] = None,
    max_workers: Optional[int] = None,
    smoothing: Optional[float] = None,
) -> RiskEngine:
    """Create a RiskEngine, filling unset options from settings.

    Parameters:
        seed: Smoothing seed (default: RX_RANDOM_SEED)
        max_workers: Worker threads (default: RX_MAX_WORKERS)
        smoothing: Smoothing half-width (default: RX_SCORE_SMOOTHING)

    Returns:
        RiskEngine: Engine backed by HeuristicRiskModel
    """
    model = HeuristicRiskModel(
        seed=seed if seed is not None else settings.random_seed,
        smoothing=smoothing if smoothing is not None else settings.score_smoothing,
    )
    return RiskEngine(model, max_workers=max_workers or settings.max_workers)


def process_text(
    raw_text: str,
    source: str = "<upload>",
    engine: Optional[RiskEngine] = None,
    ingester: Optional[IngestionPort] = None,
) -> PipelineResult:
    """Parse and score delimited text.

    The caller bounds the size of the bytes it decoded into raw_text.

    Raises:
        FormatError: If the text has no data rows
    """
    started = time.perf_counter()
    ingester = ingester or CSVIngester()
    engine = engine or create_risk_engine()

    records = ingester.parse(raw_text, source=source)
    return _score(records, source, engine, started)


def process_file(
    source: str,
    engine: Optional[RiskEngine] = None,
    ingester: Optional[IngestionPort] = None,
) -> PipelineResult:
    """Ingest and score a file.

    Raises:
        UnsupportedSourceError: If no adapter handles the source
        SourceNotFoundError: If the file does not exist
        FormatError: If the file has no data rows
        InputTooLargeError: If the file exceeds the size limit
    """
    started = time.perf_counter()
    if ingester is None:
        ingester = get_adapter(source, max_input_bytes=settings.max_input_bytes)
        logger.info(f"Selected adapter: {ingester.__class__.__name__}")
    engine = engine or create_risk_engine()

    records = ingester.ingest(source)
    return _score(records, source, engine, started)


def _score(records, source: str, engine: RiskEngine, started: float) -> PipelineResult:
    scored = engine.score(records)
    summary = summarize(scored)
    elapsed = time.perf_counter() - started
    logger.info(f"Pipeline finished for {source}: {len(scored)} records in {elapsed:.3f}s")
    return PipelineResult(
        source=source,
        records=scored,
        summary=summary,
        elapsed_seconds=elapsed,
    )
