"""Unit tests for the weighted risk model.

Most tests disable smoothing so every contribution can be checked exactly.
The smoothing tests at the end cover seeding and bounds.
"""

from datetime import date

import pytest

from rxtriage.domain.ports import RiskAssessment
from rxtriage.domain.prescription_record import PrescriptionRecord
from rxtriage.domain.scoring import (
    HeuristicRiskModel,
    age_in_years,
    is_high_risk_drug,
    refill_interval_days,
)


class TestHelpers:
    """Test drug matching, refill interval and age helpers."""

    @pytest.mark.parametrize("name,expected", [
        ("Oxycodone", True),
        ("OXYCODONE", True),
        ("oxycodone 10mg", True),
        ("Fentanyl Patch", True),
        ("Morphine", True),
        ("Hydrocodone", True),
        ("OxyContin", False),
        ("Ibuprofen", False),
        ("", False),
        ("   ", False),
    ])
    def test_is_high_risk_drug(self, name, expected):
        """Test first-word, case-insensitive matching."""
        assert is_high_risk_drug(name) is expected

    def test_refill_interval(self, make_record):
        """Test whole-day interval between prescription and refill."""
        record = make_record(prescription_date="2025-01-01", refill_date="2025-01-15")
        assert refill_interval_days(record) == 14

    def test_refill_interval_missing_date(self, make_record):
        """Test that a missing or malformed date yields None."""
        assert refill_interval_days(make_record()) is None
        assert refill_interval_days(make_record(refill_date="15/01/2025")) is None

    def test_age_is_year_difference(self, make_record):
        """Test age derivation against a reference date."""
        record = make_record(date_of_birth="1980-12-31")
        assert age_in_years(record, date(2026, 1, 1)) == 46

    def test_age_unparsable(self, make_record):
        """Test that a malformed birth date yields None."""
        assert age_in_years(make_record(date_of_birth="unknown"), date(2026, 1, 1)) is None


class TestBaseline:
    """Test a record that triggers nothing."""

    def test_no_factors(self, flat_model, make_record):
        """Test zero score and lowered confidence with no factors."""
        assessment = flat_model.score(make_record())

        assert isinstance(assessment, RiskAssessment)
        assert assessment.score == 0.0
        assert assessment.confidence == pytest.approx(0.7)
        assert assessment.factors == ()

    def test_all_defaults_record(self, flat_model):
        """Test that a record of defaults only deviates on days supplied."""
        assessment = flat_model.score(PrescriptionRecord())

        assert assessment.score == pytest.approx(0.15)
        assert assessment.factors == ("days_supply_deviation",)

    def test_negative_smoothing_rejected(self):
        """Test constructor validation."""
        with pytest.raises(ValueError):
            HeuristicRiskModel(smoothing=-0.01)


class TestContributions:
    """Test each scoring rule in isolation."""

    @pytest.mark.parametrize("dosage,expected,factor", [
        (150, 0.4, "dosage_above_120mg"),
        (121, 0.4, "dosage_above_120mg"),
        (120, 0.3, "dosage_above_80mg"),
        (100, 0.3, "dosage_above_80mg"),
        (60, 0.2, "dosage_above_50mg"),
        (50, 0.0, None),
    ])
    def test_dosage_bands(self, flat_model, make_record, dosage, expected, factor):
        """Test dosage contributions and their strict thresholds."""
        assessment = flat_model.score(make_record(dosage_mg=dosage))
        assert assessment.score == pytest.approx(expected)
        if factor:
            assert factor in assessment.factors

    @pytest.mark.parametrize("quantity,expected", [
        (90, 0.125),
        (180, 0.25),
        (400, 0.25),
        (0, 0.0),
    ])
    def test_quantity_is_capped(self, flat_model, make_record, quantity, expected):
        """Test linear quantity contribution capped at 180 units."""
        assert flat_model.score(make_record(quantity=quantity)).score == pytest.approx(expected)

    @pytest.mark.parametrize("days,expected", [
        (10, 0.15),
        (0, 0.15),
        (46, 0.15),
        (45, 0.0),
        (15, 0.0),
        (30, 0.0),
    ])
    def test_days_supply_deviation(self, flat_model, make_record, days, expected):
        """Test deviation from the 30-day standard beyond half."""
        assert flat_model.score(make_record(days_supplied=days)).score == pytest.approx(expected)

    def test_cash_payment_lowers_confidence(self, flat_model, make_record):
        """Test cash contribution and its confidence penalty."""
        assessment = flat_model.score(make_record(payment_type="Cash"))
        assert assessment.score == pytest.approx(0.2)
        assert assessment.confidence == pytest.approx(0.65)

    def test_medicaid_payment(self, flat_model, make_record):
        """Test Medicaid contribution."""
        assessment = flat_model.score(make_record(payment_type="Medicaid"))
        assert assessment.score == pytest.approx(0.05)
        assert assessment.factors == ("medicaid_payment",)

    def test_payment_match_is_exact(self, flat_model, make_record):
        """Test that payment types are matched case-sensitively."""
        assert flat_model.score(make_record(payment_type="cash")).score == 0.0

    @pytest.mark.parametrize("refills,expected", [
        (6, 0.15),
        (5, 0.08),
        (4, 0.08),
        (3, 0.0),
    ])
    def test_refill_bands(self, flat_model, make_record, refills, expected):
        """Test refill-count contributions."""
        assert flat_model.score(make_record(refill_number=refills)).score == pytest.approx(expected)

    @pytest.mark.parametrize("refill_date,expected,factor", [
        ("2025-01-15", 0.25, "early_refill"),
        ("2025-01-23", 0.15, "slightly_early_refill"),
        ("2025-01-31", 0.0, None),
    ])
    def test_refill_timing(self, flat_model, make_record, refill_date, expected, factor):
        """Test early-refill ratio bands on a 30-day supply."""
        record = make_record(prescription_date="2025-01-01", refill_date=refill_date)
        assessment = flat_model.score(record)
        assert assessment.score == pytest.approx(expected)
        if factor:
            assert assessment.factors == (factor,)

    def test_refill_timing_skipped_without_supply(self, flat_model, make_record):
        """Test that zero days supplied skips the refill ratio."""
        record = make_record(
            days_supplied=0,
            prescription_date="2025-01-01",
            refill_date="2025-01-02",
        )
        assessment = flat_model.score(record)
        assert "early_refill" not in assessment.factors
        assert "slightly_early_refill" not in assessment.factors

    def test_overlapping_raises_confidence(self, flat_model, make_record):
        """Test overlap contribution and its confidence boost."""
        assessment = flat_model.score(make_record(overlapping_prescriptions=True))
        assert assessment.score == pytest.approx(0.25)
        assert assessment.confidence == pytest.approx(0.8)

    @pytest.mark.parametrize("status,expected,confidence", [
        ("Unmatched", 0.2, 0.7),
        ("Not Available", 0.1, 0.65),
        ("Matched", 0.0, 0.7),
    ])
    def test_pdmp_status(self, flat_model, make_record, status, expected, confidence):
        """Test PDMP contributions and the not-available confidence penalty."""
        assessment = flat_model.score(make_record(pdmp_status=status))
        assert assessment.score == pytest.approx(expected)
        assert assessment.confidence == pytest.approx(confidence)

    @pytest.mark.parametrize("adherence,expected", [
        (40, 0.15),
        (65, 0.1),
        (80, 0.0),
        (95, 0.0),
        (97, 0.05),
        (None, 0.0),
    ])
    def test_adherence_bands(self, flat_model, make_record, adherence, expected):
        """Test adherence contributions, including suspiciously high scores."""
        assessment = flat_model.score(make_record(adherence_score=adherence))
        assert assessment.score == pytest.approx(expected)

    @pytest.mark.parametrize("method,expected", [
        ("Third-party", 0.1),
        ("Delivery", 0.05),
        ("In-person", 0.0),
    ])
    def test_pickup_method(self, flat_model, make_record, method, expected):
        """Test pickup contributions."""
        assert flat_model.score(make_record(pickup_method=method)).score == pytest.approx(expected)

    def test_high_risk_drug(self, flat_model, make_record):
        """Test high-risk drug contribution."""
        assessment = flat_model.score(make_record(drug_name="Oxycodone 10mg"))
        assert assessment.score == pytest.approx(0.1)
        assert assessment.factors == ("high_risk_drug",)

    @pytest.mark.parametrize("dob,expected", [
        ("2005-06-01", 0.05),
        ("1945-01-01", 0.05),
        ("1980-04-12", 0.0),
        ("not a date", 0.0),
    ])
    def test_age_extremes(self, flat_model, make_record, dob, expected):
        """Test age contribution outside 25-75."""
        assert flat_model.score(make_record(date_of_birth=dob)).score == pytest.approx(expected)


class TestCombination:
    """Test combined factors, clamping and confidence adjustment."""

    def test_many_factors_clamp_and_boost(self, flat_model, make_record):
        """Test score clamp at 1 and confidence boost above five factors."""
        record = make_record(
            dosage_mg=100,
            quantity=90,
            payment_type="Cash",
            overlapping_prescriptions=True,
            pdmp_status="Unmatched",
            pickup_method="Third-party",
        )
        assessment = flat_model.score(record)

        assert assessment.score == 1.0
        assert len(assessment.factors) == 6
        assert assessment.confidence == pytest.approx(0.95)

    def test_high_risk_scenario(self, flat_model, make_record):
        """Test the canonical high-risk dispensing pattern."""
        record = make_record(
            dosage_mg=150,
            quantity=200,
            payment_type="Cash",
            overlapping_prescriptions=True,
            refill_number=7,
            pdmp_status="Unmatched",
        )
        assert flat_model.score(record).score == 1.0

    def test_two_factors_leave_confidence(self, flat_model, make_record):
        """Test that two to five factors do not adjust confidence."""
        record = make_record(payment_type="Cash", pdmp_status="Not Available")
        assessment = flat_model.score(record)
        assert assessment.score == pytest.approx(0.3)
        assert assessment.confidence == pytest.approx(0.7)

    def test_factor_order(self, flat_model, make_record):
        """Test that factors are reported in evaluation order."""
        record = make_record(drug_name="Morphine", dosage_mg=90, payment_type="Medicaid")
        assert flat_model.score(record).factors == (
            "dosage_above_80mg",
            "medicaid_payment",
            "high_risk_drug",
        )


class TestSmoothing:
    """Test the seeded perturbation."""

    def test_seeded_score_is_reproducible(self, make_record):
        """Test that the same seed and record give the same assessment."""
        record = make_record(dosage_mg=100)
        first = HeuristicRiskModel(seed=42).score(record)
        second = HeuristicRiskModel(seed=42).score(record)
        assert first == second

    def test_perturbation_is_bounded(self, make_record):
        """Test that smoothing stays within its half-width."""
        record = make_record(dosage_mg=100)
        for seed in range(25):
            score = HeuristicRiskModel(seed=seed, smoothing=0.04).score(record).score
            assert 0.26 - 1e-9 <= score <= 0.34 + 1e-9

    def test_seeds_vary_the_score(self, make_record):
        """Test that different seeds produce different perturbations."""
        record = make_record(dosage_mg=100)
        scores = {HeuristicRiskModel(seed=seed).score(record).score for seed in range(20)}
        assert len(scores) > 1

    def test_perturbation_depends_on_record(self, make_record):
        """Test that two different records draw independent perturbations."""
        model = HeuristicRiskModel(seed=7)
        first = model.score(make_record(dosage_mg=100, patient_id="A"))
        second = model.score(make_record(dosage_mg=100, patient_id="B"))
        # Same weighted sum, distinct offsets
        assert first.score != second.score

    def test_unseeded_stays_in_bounds(self, make_record):
        """Test bounds without a seed."""
        model = HeuristicRiskModel()
        for _ in range(20):
            assessment = model.score(make_record(dosage_mg=150, quantity=400, payment_type="Cash"))
            assert 0.0 <= assessment.score <= 1.0
            assert 0.5 <= assessment.confidence <= 1.0

    def test_clamped_at_zero(self, make_record):
        """Test that negative perturbation cannot push the score below zero."""
        for seed in range(20):
            assert HeuristicRiskModel(seed=seed).score(make_record()).score >= 0.0
