"""Tests for boundary validation of snapshots and raw payloads."""

from datetime import date
from decimal import Decimal

import pytest

from captable_engine.schemas import Issuance, OptionGrant, SAFE, Stakeholder
from captable_engine.validation import parse_snapshot, validate_payload, validate_snapshot


def test_valid_snapshot(basic_snapshot):
    result = validate_snapshot(basic_snapshot)

    assert result.valid is True
    assert result.errors == ()
    assert result.warnings == ()


class TestErrors:
    def test_duplicate_ids(self, basic_snapshot):
        duplicate = Stakeholder(id="common", name="Confusing")
        snapshot = basic_snapshot.model_copy(
            update={"stakeholders": basic_snapshot.stakeholders + (duplicate,)}
        )
        result = validate_snapshot(snapshot)

        assert result.valid is False
        assert "Duplicate ID found: common appears 2 times" in result.errors

    def test_dangling_references(self, basic_snapshot):
        orphan_issuance = Issuance(
            id="is_orphan",
            security_class_id="series_z",
            stakeholder_id="nobody",
            qty=Decimal("10"),
            issue_date=date(2024, 1, 1),
        )
        orphan_safe = SAFE(
            id="safe_orphan",
            stakeholder_id="nobody",
            amount=Decimal("1000"),
            issue_date=date(2024, 1, 1),
            cap=Decimal("1000000"),
        )
        snapshot = basic_snapshot.model_copy(update={
            "issuances": basic_snapshot.issuances + (orphan_issuance,),
            "safes": (orphan_safe,),
        })
        result = validate_snapshot(snapshot)

        assert result.valid is False
        assert "issuances[1]: Invalid stakeholder_id reference: nobody" in result.errors
        assert "issuances[1]: Invalid security_class_id reference: series_z" in result.errors
        assert "safes[0]: Invalid stakeholder_id reference: nobody" in result.errors

    def test_grant_with_unknown_stakeholder(self, basic_snapshot):
        grant = basic_snapshot.option_grants[0].model_copy(update={"stakeholder_id": "nobody"})
        snapshot = basic_snapshot.model_copy(update={"option_grants": (grant,)})

        result = validate_snapshot(snapshot)
        assert "option_grants[0]: Invalid stakeholder_id reference: nobody" in result.errors

    def test_issued_exceeds_authorized(self, basic_snapshot):
        extra = basic_snapshot.issuances[0].model_copy(
            update={"id": "is_extra", "qty": Decimal("3500000")}
        )
        snapshot = basic_snapshot.model_copy(
            update={"issuances": basic_snapshot.issuances + (extra,)}
        )
        result = validate_snapshot(snapshot)

        assert result.valid is False
        assert any("Issued shares (10500000) exceed authorized" in e for e in result.errors)

    def test_grants_exceed_pool(self, basic_snapshot):
        grant = basic_snapshot.option_grants[0].model_copy(update={"qty": Decimal("2500000")})
        snapshot = basic_snapshot.model_copy(update={"option_grants": (grant,)})
        result = validate_snapshot(snapshot)

        assert result.valid is False
        assert "Total option grants (2500000) exceed option pool authorized (2000000)" in result.errors


class TestWarnings:
    def test_vesting_before_grant(self, basic_snapshot):
        grant = basic_snapshot.option_grants[0].model_copy(update={"grant_date": date(2024, 3, 1)})
        snapshot = basic_snapshot.model_copy(update={"option_grants": (grant,)})
        result = validate_snapshot(snapshot)

        assert result.valid is True
        assert [w.path for w in result.warnings] == ["option_grants[0].vesting.start"]

    def test_safe_without_terms(self, basic_snapshot):
        safe = SAFE(
            id="safe_plain",
            stakeholder_id="founder_alice",
            amount=Decimal("50000"),
            issue_date=date(2024, 2, 1),
        )
        result = validate_snapshot(basic_snapshot.model_copy(update={"safes": (safe,)}))

        assert result.valid is True
        assert result.warnings[0].message == "SAFE has neither cap nor discount specified"

    def test_stakeholder_without_equity_is_info(self, basic_snapshot):
        idle = Stakeholder(id="advisor", name="Idle Advisor")
        snapshot = basic_snapshot.model_copy(
            update={"stakeholders": basic_snapshot.stakeholders + (idle,)}
        )
        result = validate_snapshot(snapshot, strict=True)

        assert result.valid is True
        assert result.warnings[0].severity == "info"
        assert result.warnings[0].path == "stakeholders.advisor"

    def test_issuance_before_formation(self, basic_snapshot):
        early = basic_snapshot.issuances[0].model_copy(update={"issue_date": date(2023, 6, 1)})
        result = validate_snapshot(basic_snapshot.model_copy(update={"issuances": (early,)}))

        assert result.valid is True
        assert result.warnings[0].path == "issuances[0].issue_date"


class TestStrictMode:
    def _snapshot_with_warning(self, basic_snapshot):
        grant = basic_snapshot.option_grants[0].model_copy(update={"grant_date": date(2024, 3, 1)})
        return basic_snapshot.model_copy(update={"option_grants": (grant,)})

    def test_strict_promotes_warnings(self, basic_snapshot):
        result = validate_snapshot(self._snapshot_with_warning(basic_snapshot), strict=True)

        assert result.valid is False
        assert result.errors == (
            "option_grants[0].vesting.start: Vesting start date is before grant date",
        )
        assert result.warnings == ()

    def test_strict_from_environment(self, basic_snapshot, monkeypatch):
        monkeypatch.setenv("CAPTABLE_STRICT_VALIDATION", "true")

        result = validate_snapshot(self._snapshot_with_warning(basic_snapshot))
        assert result.valid is False

    def test_explicit_flag_overrides_environment(self, basic_snapshot, monkeypatch):
        monkeypatch.setenv("CAPTABLE_STRICT_VALIDATION", "true")

        result = validate_snapshot(self._snapshot_with_warning(basic_snapshot), strict=False)
        assert result.valid is True


class TestPayload:
    def test_valid_payload(self, basic_snapshot):
        payload = basic_snapshot.model_dump(mode="json")

        assert validate_payload(payload).valid is True
        assert parse_snapshot(payload) == basic_snapshot

    def test_schema_errors_reported_with_path(self, basic_snapshot):
        payload = basic_snapshot.model_dump(mode="json")
        payload["issuances"][0]["qty"] = "-5"
        payload["security_classes"][0]["kind"] = "WARRANT"

        result = validate_payload(payload)

        assert result.valid is False
        assert any(e.startswith("issuances.0.qty:") for e in result.errors)
        assert any(e.startswith("security_classes.0.kind:") for e in result.errors)

    def test_discount_out_of_range(self):
        payload = {
            "stakeholders": [{"id": "sh_1", "name": "Investor"}],
            "safes": [{
                "id": "safe_1",
                "stakeholder_id": "sh_1",
                "amount": "100000",
                "issue_date": "2024-01-01",
                "discount": "1.2",
            }],
        }
        result = validate_payload(payload)

        assert result.valid is False
        assert any(e.startswith("safes.0.discount:") for e in result.errors)

    def test_malformed_date(self):
        payload = {
            "stakeholders": [{"id": "sh_1", "name": "Investor"}],
            "option_grants": [{
                "id": "og_1",
                "stakeholder_id": "sh_1",
                "qty": "1000",
                "exercise": "0.5",
                "grant_date": "2024-02-30",
            }],
        }
        result = validate_payload(payload)

        assert result.valid is False
        assert any(e.startswith("option_grants.0.grant_date:") for e in result.errors)

    def test_business_rules_applied_after_parsing(self):
        payload = {
            "security_classes": [
                {"id": "common", "kind": "COMMON", "label": "Common", "authorized": "100"}
            ],
            "issuances": [{
                "id": "is_1",
                "security_class_id": "common",
                "stakeholder_id": "ghost",
                "qty": "50",
                "issue_date": "2024-01-01",
            }],
        }
        result = validate_payload(payload)

        assert result.valid is False
        assert result.errors == ("issuances[0]: Invalid stakeholder_id reference: ghost",)


@pytest.mark.parametrize("qty", ["0", "-1"])
def test_option_grant_quantity_must_be_positive(qty):
    with pytest.raises(ValueError):
        OptionGrant(
            id="og_1",
            stakeholder_id="sh_1",
            qty=Decimal(qty),
            exercise=Decimal("1"),
            grant_date=date(2024, 1, 1),
        )
