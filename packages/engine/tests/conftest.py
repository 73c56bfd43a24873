"""Shared fixtures: a small company with founders, an option pool and SAFEs."""

from datetime import date
from decimal import Decimal

import pytest

from captable_engine.config import get_settings
from captable_engine.schemas import (
    CapTableSnapshot,
    Company,
    Issuance,
    OptionGrant,
    SAFE,
    SecurityClass,
    Stakeholder,
    Vesting,
)

FOUR_YEAR_CLIFF = Vesting(start=date(2024, 1, 1), months_total=48, cliff_months=12)


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def basic_snapshot() -> CapTableSnapshot:
    """7M founder shares, one 500K grant on a 4y/1y schedule, 2M pool."""
    return CapTableSnapshot(
        company=Company(name="Acme Corp", formation_date=date(2023, 12, 1)),
        stakeholders=(
            Stakeholder(id="founder_alice", name="Alice Founder"),
            Stakeholder(id="employee_bob", name="Bob Employee"),
        ),
        security_classes=(
            SecurityClass(id="common", kind="COMMON", label="Common Stock", authorized=Decimal("10000000")),
            SecurityClass(id="pool", kind="OPTION_POOL", label="Option Pool", authorized=Decimal("2000000")),
        ),
        issuances=(
            Issuance(
                id="is_founder",
                security_class_id="common",
                stakeholder_id="founder_alice",
                qty=Decimal("7000000"),
                pps=Decimal("0.0001"),
                issue_date=date(2024, 1, 1),
            ),
        ),
        option_grants=(
            OptionGrant(
                id="og_bob",
                stakeholder_id="employee_bob",
                qty=Decimal("500000"),
                exercise=Decimal("0.10"),
                grant_date=date(2024, 1, 1),
                vesting=FOUR_YEAR_CLIFF,
            ),
        ),
    )


@pytest.fixture
def safe_snapshot() -> CapTableSnapshot:
    """8M founder shares and three SAFEs with different terms."""
    return CapTableSnapshot(
        company=Company(name="Seed Corp"),
        stakeholders=(
            Stakeholder(id="founders", name="Founders"),
            Stakeholder(id="angel", name="Angel Investor"),
            Stakeholder(id="fund", type="entity", name="Seed Fund"),
            Stakeholder(id="friend", name="Friendly Investor"),
        ),
        security_classes=(
            SecurityClass(id="common", kind="COMMON", label="Common Stock", authorized=Decimal("20000000")),
        ),
        issuances=(
            Issuance(
                id="is_founders",
                security_class_id="common",
                stakeholder_id="founders",
                qty=Decimal("8000000"),
                issue_date=date(2023, 1, 1),
            ),
        ),
        safes=(
            SAFE(
                id="safe_angel",
                stakeholder_id="angel",
                amount=Decimal("500000"),
                issue_date=date(2023, 6, 1),
                cap=Decimal("5000000"),
                discount=Decimal("0.8"),
                type="pre",
            ),
            SAFE(
                id="safe_fund",
                stakeholder_id="fund",
                amount=Decimal("1000000"),
                issue_date=date(2023, 7, 1),
                cap=Decimal("8000000"),
                type="post",
            ),
            SAFE(
                id="safe_friend",
                stakeholder_id="friend",
                amount=Decimal("2000000"),
                issue_date=date(2023, 8, 1),
                discount=Decimal("0.75"),
            ),
        ),
    )


@pytest.fixture
def name_lookups(monkeypatch):
    """Counts full stakeholder-name map builds; per-id lookups fail the test."""
    calls = []
    build = CapTableSnapshot.stakeholder_names

    def counting(self):
        calls.append(1)
        return build(self)

    def per_id_lookup(self, stakeholder_id):
        raise AssertionError(f"per-stakeholder lookup for {stakeholder_id}")

    monkeypatch.setattr(CapTableSnapshot, "stakeholder_names", counting)
    monkeypatch.setattr(CapTableSnapshot, "stakeholder", per_id_lookup)
    monkeypatch.setattr(CapTableSnapshot, "stakeholder_name", per_id_lookup)
    return calls


def many_holders_snapshot(count: int = 200) -> CapTableSnapshot:
    """``count`` stakeholders, each with one issuance, one grant and one SAFE."""
    common = SecurityClass(id="common", kind="COMMON", label="Common", authorized=Decimal("100000000"))
    pool = SecurityClass(id="pool", kind="OPTION_POOL", label="Pool", authorized=Decimal("10000000"))
    ids = [f"sh_{n:04d}" for n in range(count)]
    return CapTableSnapshot(
        stakeholders=tuple(Stakeholder(id=sid, name=f"Holder {sid}") for sid in ids),
        security_classes=(common, pool),
        issuances=tuple(
            Issuance(
                id=f"is_{sid}",
                security_class_id="common",
                stakeholder_id=sid,
                qty=Decimal("1000"),
                issue_date=date(2024, 1, 1),
            )
            for sid in ids
        ),
        option_grants=tuple(
            OptionGrant(
                id=f"og_{sid}",
                stakeholder_id=sid,
                qty=Decimal("100"),
                exercise=Decimal("0.10"),
                grant_date=date(2024, 1, 1),
                vesting=FOUR_YEAR_CLIFF,
            )
            for sid in ids
        ),
        safes=tuple(
            SAFE(
                id=f"safe_{sid}",
                stakeholder_id=sid,
                amount=Decimal("10000"),
                issue_date=date(2024, 1, 1),
                cap=Decimal("5000000"),
            )
            for sid in ids
        ),
    )
