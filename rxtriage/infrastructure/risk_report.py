"""Risk Report Export.

This module writes a scored batch to disk for the review dashboard or for
offline review. JSON reports carry the batch summary and every scored record;
CSV reports carry one row per record with the input column names plus the
risk columns.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

from rxtriage.domain.ports import Result
from rxtriage.domain.prescription_record import ScoredRecord
from rxtriage.domain.summary import RiskSummary, summarize

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ('.json', '.csv')
WARNING_SEPARATOR = "; "


def build_risk_report(
    scored: Sequence[ScoredRecord],
    summary: Optional[RiskSummary] = None,
    source: Optional[str] = None,
) -> dict:
    """Build the JSON-serializable report for a scored batch.

    Parameters:
        scored: Scored records, in pipeline order
        summary: Precomputed summary; computed from `scored` when omitted
        source: Input identifier recorded in the report

    Returns:
        dict: {"generated_at", "source", "summary", "records"}
    """
    summary = summary or summarize(scored)
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "source": source,
        "summary": summary.model_dump(mode="json"),
        "records": [record.to_export_dict() for record in scored],
    }


def scored_records_frame(scored: Sequence[ScoredRecord]) -> pd.DataFrame:
    """Tabulate scored records with CSV header names as columns."""
    rows = [record.to_export_dict() for record in scored]
    columns = [field.alias for field in ScoredRecord.model_fields.values()]
    frame = pd.DataFrame(rows, columns=columns)
    if not frame.empty:
        frame["Flagged_Warnings"] = frame["Flagged_Warnings"].map(WARNING_SEPARATOR.join)
    return frame


def export_scored_records(
    scored: Sequence[ScoredRecord],
    output_path: str,
    summary: Optional[RiskSummary] = None,
    source: Optional[str] = None,
) -> Result[dict]:
    """Write a scored batch to a JSON or CSV file.

    Parameters:
        scored: Scored records
        output_path: Destination; the suffix (.json or .csv) selects the format
        summary: Precomputed summary (JSON only)
        source: Input identifier recorded in the report (JSON only)

    Returns:
        Result[dict]: {"saved_to", "format", "record_count"} or error
    """
    output_file = Path(output_path)
    suffix = output_file.suffix.lower()

    if suffix not in SUPPORTED_FORMATS:
        return Result.failure_result(
            ValueError(f"Unsupported report format '{suffix}'. Supported: {', '.join(SUPPORTED_FORMATS)}"),
            error_type="ValueError",
            error_details={"output_path": output_path},
        )

    try:
        output_file.parent.mkdir(parents=True, exist_ok=True)

        if suffix == '.json':
            report = build_risk_report(scored, summary=summary, source=source)
            with open(output_file, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2, default=str)
        else:
            scored_records_frame(scored).to_csv(output_file, index=False)
    except OSError as e:
        logger.error(f"Failed to write report to {output_path}: {e}", exc_info=True)
        return Result.failure_result(
            e,
            error_details={"output_path": output_path, "format": suffix.lstrip('.')},
        )

    logger.info(f"Wrote {len(scored)} scored records to {output_file}")
    return Result.success_result({
        "saved_to": str(output_file),
        "format": suffix.lstrip('.'),
        "record_count": len(scored),
    })
