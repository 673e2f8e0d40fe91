"""Tests for scored batch export."""

import json

import pandas as pd
import pytest

from rxtriage.adapters.ingesters import CSVIngester
from rxtriage.infrastructure.risk_report import (
    build_risk_report,
    export_scored_records,
    scored_records_frame,
)


@pytest.fixture
def scored(flat_engine, csv_text):
    """Scored records for the two-record export."""
    return flat_engine.score(CSVIngester().parse(csv_text))


class TestBuildRiskReport:
    """Test the JSON report structure."""

    def test_report_structure(self, scored):
        """Test top-level keys and record shape."""
        report = build_risk_report(scored, source="export.csv")

        assert set(report) == {"generated_at", "source", "summary", "records"}
        assert report["source"] == "export.csv"
        assert report["summary"]["total_records"] == 2
        assert report["records"][1]["Risk_Level"] == "High"
        assert report["records"][0]["Patient_ID"] == "P001"

    def test_report_is_json_serializable(self, scored):
        """Test that the report survives json.dumps."""
        json.dumps(build_risk_report(scored))


class TestScoredRecordsFrame:
    """Test tabular export."""

    def test_columns_and_warnings(self, scored):
        """Test CSV header columns and joined warnings."""
        frame = scored_records_frame(scored)

        assert list(frame.columns[:2]) == ["Patient_ID", "Full_Name"]
        assert list(frame.columns[-4:]) == ["Risk_Score", "AI_Confidence", "Risk_Level", "Flagged_Warnings"]
        assert frame.loc[0, "Flagged_Warnings"] == "Early Refill Attempt"
        assert "; " in frame.loc[1, "Flagged_Warnings"]

    def test_empty_batch(self):
        """Test that an empty batch still has the header columns."""
        frame = scored_records_frame([])
        assert frame.empty
        assert "Risk_Level" in frame.columns


class TestExportScoredRecords:
    """Test writing reports to disk."""

    def test_export_json(self, tmp_path, scored):
        """Test JSON export."""
        output = tmp_path / "reports" / "batch.json"
        result = export_scored_records(scored, str(output), source="export.csv")

        assert result.is_success()
        assert result.value == {"saved_to": str(output), "format": "json", "record_count": 2}
        report = json.loads(output.read_text(encoding="utf-8"))
        assert len(report["records"]) == 2
        assert report["source"] == "export.csv"

    def test_export_csv(self, tmp_path, scored):
        """Test CSV export reads back with the same rows."""
        output = tmp_path / "batch.csv"
        result = export_scored_records(scored, str(output))

        assert result.is_success()
        frame = pd.read_csv(output)
        assert len(frame) == 2
        assert list(frame["Risk_Level"]) == [r.risk_tier.value for r in scored]

    def test_unsupported_format(self, tmp_path, scored):
        """Test that unknown suffixes fail without writing."""
        output = tmp_path / "batch.xlsx"
        result = export_scored_records(scored, str(output))

        assert result.is_failure()
        assert result.error_type == "ValueError"
        assert not output.exists()

    def test_unwritable_destination(self, tmp_path, scored):
        """Test that write errors become a failure result."""
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("x", encoding="utf-8")

        result = export_scored_records(scored, str(blocker / "batch.json"))

        assert result.is_failure()
        assert result.error_details["format"] == "json"
