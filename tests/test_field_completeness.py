"""
Tests for field completeness scoring.
"""

import pytest

from app.services.field_completeness import (
    CONFIDENCE_PRESENT,
    CONFIDENCE_WITH_VALUE,
    UNKNOWN_TYPE_STATUS,
    FieldCompletenessChecker,
    completeness_status,
)
from app.services.text_extraction import SAMPLE_APS, SAMPLE_LEASE


class TestFieldCompletenessChecker:

    @pytest.fixture
    def checker(self):
        return FieldCompletenessChecker()

    def test_purchase_agreement_missing_irrevocable_date(self, checker, aps_text, aps_profile):
        report = checker.check(aps_text, aps_profile)
        assert report.missing_required == ["irrevocable_date"]
        assert report.score == 86
        assert report.status == "Mostly Complete"

    def test_extracted_values(self, checker, aps_text, aps_profile):
        values = checker.check(aps_text, aps_profile).values()
        assert values["purchase_price"] == "$750,000"
        assert values["deposit_amount"] == "$37,500"
        assert values["buyer_name"] == "John Smith"
        assert values["seller_name"] == "Jane Doe"
        assert values["closing_date"] == "June 15, 2024"
        assert values["property_address"] == "123 Main Street, Toronto, ON"

    def test_complete_purchase_agreement(self, checker, aps_profile):
        report = checker.check(SAMPLE_APS, aps_profile)
        assert report.score == 100
        assert report.status == "Complete"
        assert "schedule_a" in report.present_optional

    def test_complete_lease(self, checker, registry):
        report = checker.check(SAMPLE_LEASE, registry.get("Residential Lease Agreement"))
        assert report.missing_required == []
        assert report.score == 100
        assert report.fields["rent_amount"].value == "$2,500.00"
        assert report.fields["tenant_name"].value == "Sarah Johnson"

    def test_present_without_value_has_lower_confidence(self, checker, aps_profile):
        report = checker.check("The deposit will be paid by cheque.", aps_profile)
        match = report.fields["deposit_amount"]
        assert match.present
        assert match.value is None
        assert match.confidence == CONFIDENCE_PRESENT

    def test_present_with_value_confidence(self, checker, aps_text, aps_profile):
        assert checker.check(aps_text, aps_profile).fields["buyer_name"].confidence == CONFIDENCE_WITH_VALUE

    def test_generic_profile_scores_zero(self, checker, registry, aps_text):
        report = checker.check(aps_text, registry.generic)
        assert report.score == 0
        assert report.status == UNKNOWN_TYPE_STATUS

    def test_empty_text(self, checker, aps_profile):
        report = checker.check("", aps_profile)
        assert report.score == 0
        assert report.status == "Incomplete"
        assert len(report.missing_required) == len(aps_profile.required_fields)

    def test_adding_fields_never_lowers_the_score(self, checker, aps_profile, aps_text):
        lines = aps_text.splitlines()
        scores = [checker.check("\n".join(lines[:n]), aps_profile).score for n in range(len(lines) + 1)]
        assert scores == sorted(scores)

    def test_report_round_trip(self, checker, aps_text, aps_profile):
        from app.services.field_completeness import CompletenessReport

        report = checker.check(aps_text, aps_profile)
        restored = CompletenessReport.from_dict(report.to_dict())
        assert restored.score == report.score
        assert restored.values() == report.values()


class TestScoreFormula:

    def test_required_only_by_default(self):
        checker = FieldCompletenessChecker()
        assert checker.score(5, 7, 0, 4) == round(100 * 5 / 7)
        assert checker.score(7, 7, 0, 4) == 100

    def test_weighted_blend(self):
        checker = FieldCompletenessChecker(required_weight=0.8)
        assert checker.score(7, 7, 0, 4) == 80
        assert checker.score(6, 7, 2, 4) == 79

    def test_no_optional_fields_uses_required_ratio(self):
        checker = FieldCompletenessChecker(required_weight=0.8)
        assert checker.score(3, 5, 0, 0) == 60

    def test_weight_out_of_range(self):
        with pytest.raises(ValueError):
            FieldCompletenessChecker(required_weight=1.5)


class TestCompletenessStatus:

    @pytest.mark.parametrize("score,status", [
        (100, "Complete"),
        (90, "Complete"),
        (89, "Mostly Complete"),
        (70, "Mostly Complete"),
        (69, "Partially Complete"),
        (50, "Partially Complete"),
        (49, "Incomplete"),
        (0, "Incomplete"),
    ])
    def test_buckets(self, score, status):
        assert completeness_status(score) == status
