"""
Tests for the legal rule repository and its built-in seed data.
"""

import pytest

from app.services.legal_rules import (
    DEFAULT_REFERENCES,
    RuleRecord,
    SqlRuleRepository,
    normalize_jurisdiction,
    seed_default_rules,
)


@pytest.mark.parametrize("raw,code", [
    ("Ontario", "ON"),
    ("on", "ON"),
    (" British Columbia ", "BC"),
    ("Québec", "QC"),
    ("Canada", "CA"),
    ("nb", "NB"),
])
def test_normalize_jurisdiction(raw, code):
    assert normalize_jurisdiction(raw) == code


class TestSqlRuleRepository:

    @pytest.mark.anyio
    async def test_seeded_lease_rule(self, database):
        rule = await SqlRuleRepository(database).query("Ontario", "Residential Lease Agreement")

        assert rule is not None
        assert rule.id == "lease-ontario-v1"
        assert rule.jurisdiction == "ON"
        assert any(f["name"] == "rent_amount" for f in rule.required_fields)

    @pytest.mark.anyio
    async def test_document_type_is_case_insensitive(self, database):
        rule = await SqlRuleRepository(database).query("ON", "agreement of purchase and sale (aps)")
        assert rule.id == "aps-ontario-v1"

    @pytest.mark.anyio
    async def test_not_found(self, database):
        repo = SqlRuleRepository(database)
        assert await repo.query("Alberta", "Residential Lease Agreement") is None
        assert await repo.query("Ontario", "Marriage Certificate") is None

    @pytest.mark.anyio
    async def test_newest_version_wins(self, database):
        repo = SqlRuleRepository(database)
        await repo.save(RuleRecord(
            id="lease-ontario-v2",
            jurisdiction="Ontario",
            document_type="Residential Lease Agreement",
            version="2.0",
            red_flags=["Key money requested"],
        ))

        rule = await repo.query("ON", "Residential Lease Agreement")
        assert rule.id == "lease-ontario-v2"
        assert rule.red_flags == ["Key money requested"]

    @pytest.mark.anyio
    async def test_save_replaces_by_id(self, database):
        repo = SqlRuleRepository(database)
        saved = await repo.save(RuleRecord(
            id="cra-noa-v1",
            jurisdiction="CA",
            document_type="Notice of Assessment (CRA)",
            expiry_rules="Keep for six years",
        ))

        assert saved.expiry_rules == "Keep for six years"
        rule = await repo.query("Canada", "Notice of Assessment (CRA)")
        assert rule.expiry_rules == "Keep for six years"
        assert rule.to_dict()["id"] == "cra-noa-v1"

    @pytest.mark.anyio
    async def test_seeding_is_idempotent(self, database):
        await seed_default_rules(database)

        references = await SqlRuleRepository(database).references()
        assert [r.title for r in references] == [r.title for r in DEFAULT_REFERENCES]
