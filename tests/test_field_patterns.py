"""
Tests for the field, signature and date pattern tables.
"""

from datetime import date

import pytest

from app.services.document_profiles import PROFILES
from app.services.field_patterns import (
    FIELD_PATTERNS,
    extract_value,
    field_label,
    find_issue_date,
    has_signature,
    is_present,
    parse_date,
    parse_money,
)


class TestParseDate:

    @pytest.mark.parametrize("raw,expected", [
        ("2024-03-15", date(2024, 3, 15)),
        ("06/15/2024", date(2024, 6, 15)),
        ("6/5/2024", date(2024, 6, 5)),
        ("March 15, 2024", date(2024, 3, 15)),
        ("Mar. 15 2024", date(2024, 3, 15)),
        ("September 1st, 2023", date(2023, 9, 1)),
    ])
    def test_supported_formats(self, raw, expected):
        assert parse_date(raw) == expected

    def test_impossible_date_is_none(self):
        assert parse_date("02/30/2024") is None

    def test_unrecognized_text_is_none(self):
        assert parse_date("next Tuesday") is None


class TestParseMoney:

    def test_commas_and_cents(self):
        assert parse_money("$37,500.00") == 37500.0

    def test_plain_number(self):
        assert parse_money("$750,000") == 750000.0

    def test_no_digits(self):
        assert parse_money("$") is None


class TestIssueDate:

    def test_labelled_date(self):
        raw, parsed = find_issue_date("Issue Date: March 1, 2024\nHearing: April 2, 2024")
        assert raw == "March 1, 2024"
        assert parsed == date(2024, 3, 1)

    def test_bare_date_line(self):
        assert find_issue_date("Notice\nDate: 2024-02-01\n")[1] == date(2024, 2, 1)

    def test_closing_date_is_not_an_issue_date(self):
        """Only issue/creation labels count, not deadlines."""
        assert find_issue_date("Closing Date: June 15, 2024") is None


class TestSignatures:

    def test_signed_line(self):
        assert has_signature("Buyer Signature: [Signed]", "buyer")

    def test_alias(self):
        assert has_signature("Purchaser's signature: J. Smith", "buyer")

    def test_blank_rule_is_unsigned(self):
        assert not has_signature("Buyer Signature: ______________", "buyer")

    def test_signed_by_form(self):
        assert has_signature("Signed by the Landlord on March 3", "landlord")

    def test_missing_line(self):
        assert not has_signature("Buyer: John Smith", "buyer")


class TestFieldExtraction:

    def test_name_value_stops_at_line_end(self):
        assert extract_value("Buyer: John Smith\nSeller: Jane Doe", "buyer_name") == "John Smith"

    def test_money_value(self):
        assert extract_value("Purchase Price: $750,000", "purchase_price") == "$750,000"

    def test_security_deposit_is_not_a_deposit(self):
        assert not is_present("Security Deposit: $2,500.00", "deposit_amount")

    def test_form_number(self):
        assert extract_value("Form N4 - Notice to End your Tenancy", "form_number") == "N4"

    def test_term_length(self):
        assert extract_value("Lease Term: 12 months", "term_length") == "12 months"

    def test_unknown_field(self):
        assert extract_value("anything", "no_such_field") is None
        assert not is_present("anything", "no_such_field")


class TestFieldTable:

    def test_every_profile_field_has_patterns(self):
        for profile in PROFILES:
            for name in profile.required_fields + profile.optional_fields:
                assert name in FIELD_PATTERNS, f"{profile.name}: {name}"

    def test_labels(self):
        assert field_label("purchase_price") == "Purchase Price"
        assert field_label("some_custom_field") == "Some Custom Field"
