"""In-memory repository owning the cap table record lifecycle.

The calculation functions are pure and never change records. All creation,
transfer, cancellation and exercise goes through ``CapTableRepository``, an
id-keyed arena of immutable records. Updating a record replaces it with a
modified copy; ``snapshot()`` hands the engine a frozen view of the current
state.

The repository is a single-writer object: callers that share one across
threads must serialize mutations themselves. Snapshots it returns are safe
to read concurrently.

Usage:
    repo = CapTableRepository(Company(name="Acme Corp"))
    alice = repo.add_stakeholder("Alice")
    common = repo.add_security_class("COMMON", "Common Stock", 10_000_000)
    repo.issue_shares(common.id, alice.id, 7_000_000)

    result = calc_cap(repo.snapshot(), "2025-01-01")
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Literal, Optional, Union
from uuid import uuid4

from .dates import DateLike, get_today_utc, to_utc_date
from .errors import CapacityExceededError, InvalidOperationError, RecordNotFoundError
from .log_config import get_audit_logger
from .schemas import (
    CapTableSnapshot,
    Company,
    Issuance,
    OptionGrant,
    SAFE,
    SecurityClass,
    SecurityKind,
    Stakeholder,
    Vesting,
)

logger = logging.getLogger(__name__)
audit_logger = get_audit_logger()

Number = Union[int, float, Decimal]


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex}"


def _as_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _date_or_today(value: Optional[DateLike]):
    return to_utc_date(value if value is not None else get_today_utc())


@dataclass(frozen=True)
class PoolCapacity:
    authorized: Decimal
    granted: Decimal
    remaining: Decimal


@dataclass(frozen=True)
class StakeholderHoldings:
    stakeholder: Stakeholder
    issuances: List[Issuance]
    grants: List[OptionGrant]
    safes: List[SAFE]


class CapTableRepository:
    """Id-keyed store for stakeholders, security classes, issuances, grants and SAFEs."""

    def __init__(self, company: Optional[Company] = None):
        self.company = company or Company(name="Company")
        self._stakeholders: Dict[str, Stakeholder] = {}
        self._security_classes: Dict[str, SecurityClass] = {}
        self._issuances: Dict[str, Issuance] = {}
        self._grants: Dict[str, OptionGrant] = {}
        self._safes: Dict[str, SAFE] = {}

    # =========================================================================
    # Snapshots
    # =========================================================================

    def snapshot(self) -> CapTableSnapshot:
        """Frozen view of the current records, in insertion order."""
        return CapTableSnapshot(
            company=self.company,
            stakeholders=tuple(self._stakeholders.values()),
            security_classes=tuple(self._security_classes.values()),
            issuances=tuple(self._issuances.values()),
            option_grants=tuple(self._grants.values()),
            safes=tuple(self._safes.values()),
        )

    @classmethod
    def from_snapshot(cls, snapshot: CapTableSnapshot) -> "CapTableRepository":
        repo = cls(snapshot.company)
        repo._stakeholders = {s.id: s for s in snapshot.stakeholders}
        repo._security_classes = {sc.id: sc for sc in snapshot.security_classes}
        repo._issuances = {i.id: i for i in snapshot.issuances}
        repo._grants = {g.id: g for g in snapshot.option_grants}
        repo._safes = {s.id: s for s in snapshot.safes}
        logger.debug(
            "Repository loaded: %d stakeholders, %d classes, %d issuances, %d grants, %d SAFEs",
            len(repo._stakeholders), len(repo._security_classes), len(repo._issuances),
            len(repo._grants), len(repo._safes),
        )
        return repo

    def _audit(self, action: str, record_id: str, **details) -> None:
        audit_logger.info(
            "%s %s %s", action, record_id,
            " ".join(f"{k}={v}" for k, v in details.items()),
            extra={"record_id": record_id},
        )

    # =========================================================================
    # Stakeholders
    # =========================================================================

    def add_stakeholder(
        self,
        name: str,
        type: Literal["person", "entity"] = "person",
        email: Optional[str] = None,
        stakeholder_id: Optional[str] = None,
    ) -> Stakeholder:
        stakeholder = Stakeholder(id=stakeholder_id or _new_id("sh"), type=type, name=name, email=email)

        if stakeholder.id in self._stakeholders:
            raise InvalidOperationError(f'Stakeholder with ID "{stakeholder.id}" already exists')
        self._check_unique_stakeholder(stakeholder)

        self._stakeholders[stakeholder.id] = stakeholder
        self._audit("stakeholder.add", stakeholder.id, name=name)
        return stakeholder

    def _check_unique_stakeholder(self, stakeholder: Stakeholder) -> None:
        for other in self._stakeholders.values():
            if other.id != stakeholder.id and other.name == stakeholder.name and other.type == stakeholder.type:
                raise InvalidOperationError(
                    f'Stakeholder "{stakeholder.name}" of type "{stakeholder.type}" already exists'
                )

    def get_stakeholder(self, stakeholder_id: str) -> Stakeholder:
        try:
            return self._stakeholders[stakeholder_id]
        except KeyError:
            raise RecordNotFoundError("Stakeholder", stakeholder_id) from None

    def list_stakeholders(self) -> List[Stakeholder]:
        return list(self._stakeholders.values())

    def update_stakeholder(self, stakeholder_id: str, **updates) -> Stakeholder:
        current = self.get_stakeholder(stakeholder_id)
        updates.pop("id", None)
        updated = Stakeholder.model_validate({**current.model_dump(), **updates})
        self._check_unique_stakeholder(updated)
        self._stakeholders[stakeholder_id] = updated
        self._audit("stakeholder.update", stakeholder_id, fields=",".join(sorted(updates)))
        return updated

    def remove_stakeholder(self, stakeholder_id: str) -> None:
        self.get_stakeholder(stakeholder_id)
        has_equity = (
            any(i.stakeholder_id == stakeholder_id for i in self._issuances.values())
            or any(g.stakeholder_id == stakeholder_id for g in self._grants.values())
            or any(s.stakeholder_id == stakeholder_id for s in self._safes.values())
        )
        if has_equity:
            raise InvalidOperationError(
                f'Cannot remove stakeholder "{stakeholder_id}" - has existing issuances, grants or SAFEs'
            )
        del self._stakeholders[stakeholder_id]
        self._audit("stakeholder.remove", stakeholder_id)

    # =========================================================================
    # Security classes and pools
    # =========================================================================

    def add_security_class(
        self,
        kind: SecurityKind,
        label: str,
        authorized: Number,
        par_value: Optional[Number] = None,
        security_class_id: Optional[str] = None,
    ) -> SecurityClass:
        security_class = SecurityClass(
            id=security_class_id or _new_id("sc"),
            kind=kind,
            label=label,
            authorized=_as_decimal(authorized),
            par_value=_as_decimal(par_value) if par_value is not None else None,
        )

        if security_class.id in self._security_classes:
            raise InvalidOperationError(f'Security class with ID "{security_class.id}" already exists')
        if any(sc.label == label for sc in self._security_classes.values()):
            raise InvalidOperationError(f'Security class "{label}" already exists')

        self._security_classes[security_class.id] = security_class
        self._audit("security_class.add", security_class.id, kind=kind, authorized=authorized)
        return security_class

    def get_security_class(self, security_class_id: str) -> SecurityClass:
        try:
            return self._security_classes[security_class_id]
        except KeyError:
            raise RecordNotFoundError("Security class", security_class_id) from None

    def list_security_classes(self, kind: Optional[SecurityKind] = None) -> List[SecurityClass]:
        return [sc for sc in self._security_classes.values() if kind is None or sc.kind == kind]

    def pool_capacity(self, pool_id: Optional[str] = None) -> PoolCapacity:
        """Authorized, granted and remaining options across pools.

        Grants are not tied to a specific pool, so ``granted`` always counts
        every grant; ``pool_id`` only narrows the authorized amount.
        """
        if pool_id is not None:
            pool = self.get_security_class(pool_id)
            if pool.kind != "OPTION_POOL":
                raise RecordNotFoundError("Option pool", pool_id)
            pools = [pool]
        else:
            pools = self.list_security_classes("OPTION_POOL")

        authorized = sum((pool.authorized for pool in pools), Decimal("0"))
        granted = sum((g.qty for g in self._grants.values()), Decimal("0"))
        return PoolCapacity(
            authorized=authorized,
            granted=granted,
            remaining=max(Decimal("0"), authorized - granted),
        )

    def issued_by_class(self, security_class_id: str) -> Decimal:
        return sum(
            (i.qty for i in self._issuances.values() if i.security_class_id == security_class_id),
            Decimal("0"),
        )

    def remaining_authorized(self, security_class_id: str) -> Decimal:
        security_class = self.get_security_class(security_class_id)
        if security_class.kind == "OPTION_POOL":
            return self.pool_capacity(security_class_id).remaining
        issued = self.issued_by_class(security_class_id)
        return max(Decimal("0"), security_class.authorized - issued)

    def update_authorized(self, security_class_id: str, new_authorized: Number) -> SecurityClass:
        security_class = self.get_security_class(security_class_id)
        new_authorized = _as_decimal(new_authorized)

        if security_class.kind == "OPTION_POOL":
            granted = self.pool_capacity(security_class_id).granted
            if new_authorized < granted:
                raise CapacityExceededError(
                    f"Cannot reduce authorized to {new_authorized} - already granted {granted} options"
                )
        else:
            issued = self.issued_by_class(security_class_id)
            if new_authorized < issued:
                raise CapacityExceededError(
                    f"Cannot reduce authorized to {new_authorized} - already issued {issued} shares"
                )

        updated = SecurityClass.model_validate(
            {**security_class.model_dump(), "authorized": new_authorized}
        )
        self._security_classes[security_class_id] = updated
        self._audit("security_class.update_authorized", security_class_id, authorized=new_authorized)
        return updated

    def remove_security_class(self, security_class_id: str) -> None:
        security_class = self.get_security_class(security_class_id)

        if any(i.security_class_id == security_class_id for i in self._issuances.values()):
            raise InvalidOperationError(
                f'Cannot remove security class "{security_class_id}" - has existing issuances'
            )
        if security_class.kind == "OPTION_POOL":
            granted = self.pool_capacity(security_class_id).granted
            if granted > 0:
                raise InvalidOperationError(
                    f'Cannot remove option pool "{security_class_id}" - has {granted} granted options'
                )

        del self._security_classes[security_class_id]
        self._audit("security_class.remove", security_class_id)

    # =========================================================================
    # Issuances
    # =========================================================================

    def issue_shares(
        self,
        security_class_id: str,
        stakeholder_id: str,
        qty: Number,
        pps: Number = 0,
        issue_date: Optional[DateLike] = None,
        cert: Optional[str] = None,
    ) -> Issuance:
        security_class = self.get_security_class(security_class_id)
        self.get_stakeholder(stakeholder_id)

        if security_class.kind == "OPTION_POOL":
            raise InvalidOperationError(
                "Cannot issue shares from an option pool - use grant_options instead"
            )

        qty = _as_decimal(qty)
        remaining = self.remaining_authorized(security_class_id)
        if qty > remaining:
            raise CapacityExceededError(
                f'Cannot issue {qty} shares - only {remaining} authorized shares remaining '
                f'for "{security_class.label}"'
            )

        issuance = Issuance(
            id=_new_id("is"),
            security_class_id=security_class_id,
            stakeholder_id=stakeholder_id,
            qty=qty,
            pps=_as_decimal(pps),
            issue_date=_date_or_today(issue_date),
            cert=cert,
        )
        self._issuances[issuance.id] = issuance
        self._audit("issuance.create", issuance.id, stakeholder=stakeholder_id, qty=qty)
        return issuance

    def get_issuance(self, issuance_id: str) -> Issuance:
        try:
            return self._issuances[issuance_id]
        except KeyError:
            raise RecordNotFoundError("Issuance", issuance_id) from None

    def transfer_shares(
        self,
        issuance_id: str,
        to_stakeholder_id: str,
        qty: Optional[Number] = None,
        transfer_date: Optional[DateLike] = None,
    ) -> Dict[str, Issuance]:
        """Move shares to another stakeholder.

        A full transfer re-assigns the issuance; a partial one reduces it and
        creates a new issuance for the recipient at the same price.

        Returns:
            {"from": reduced or reassigned issuance, "to": recipient's issuance}
        """
        issuance = self.get_issuance(issuance_id)
        self.get_stakeholder(to_stakeholder_id)

        transfer_qty = issuance.qty if qty is None else _as_decimal(qty)
        if transfer_qty <= 0:
            raise InvalidOperationError(f"Transfer quantity must be positive, got {transfer_qty}")
        if transfer_qty > issuance.qty:
            raise InvalidOperationError(
                f"Cannot transfer {transfer_qty} shares - issuance only has {issuance.qty} shares"
            )

        if transfer_qty == issuance.qty:
            moved = issuance.model_copy(update={"stakeholder_id": to_stakeholder_id})
            self._issuances[issuance_id] = moved
            self._audit("issuance.transfer", issuance_id, to=to_stakeholder_id, qty=transfer_qty)
            return {"from": moved, "to": moved}

        remaining = issuance.model_copy(update={"qty": issuance.qty - transfer_qty})
        self._issuances[issuance_id] = remaining

        new_issuance = Issuance(
            id=_new_id("is"),
            security_class_id=issuance.security_class_id,
            stakeholder_id=to_stakeholder_id,
            qty=transfer_qty,
            pps=issuance.pps,
            issue_date=_date_or_today(transfer_date),
        )
        self._issuances[new_issuance.id] = new_issuance
        self._audit(
            "issuance.transfer", issuance_id,
            to=to_stakeholder_id, qty=transfer_qty, new_issuance=new_issuance.id,
        )
        return {"from": remaining, "to": new_issuance}

    def cancel_issuance(self, issuance_id: str) -> None:
        self.get_issuance(issuance_id)
        del self._issuances[issuance_id]
        self._audit("issuance.cancel", issuance_id)

    # =========================================================================
    # Option grants
    # =========================================================================

    def grant_options(
        self,
        stakeholder_id: str,
        qty: Number,
        exercise: Number,
        grant_date: Optional[DateLike] = None,
        vesting: Optional[Vesting] = None,
    ) -> OptionGrant:
        self.get_stakeholder(stakeholder_id)

        qty = _as_decimal(qty)
        capacity = self.pool_capacity()
        if qty > capacity.remaining:
            raise CapacityExceededError(
                f"Cannot grant {qty} options - only {capacity.remaining} options remaining in pool"
            )

        grant = OptionGrant(
            id=_new_id("og"),
            stakeholder_id=stakeholder_id,
            qty=qty,
            exercise=_as_decimal(exercise),
            grant_date=_date_or_today(grant_date),
            vesting=vesting,
        )
        self._grants[grant.id] = grant
        self._audit("grant.create", grant.id, stakeholder=stakeholder_id, qty=qty)
        return grant

    def get_grant(self, grant_id: str) -> OptionGrant:
        try:
            return self._grants[grant_id]
        except KeyError:
            raise RecordNotFoundError("Grant", grant_id) from None

    def cancel_grant(self, grant_id: str) -> None:
        self.get_grant(grant_id)
        del self._grants[grant_id]
        self._audit("grant.cancel", grant_id)

    def exercise_options(
        self,
        grant_id: str,
        qty: Number,
        exercise_date: Optional[DateLike] = None,
    ) -> Issuance:
        """Exercise options into common shares at the grant's exercise price.

        Shares are issued from the first COMMON class. The grant is reduced
        by ``qty`` and removed once fully exercised.
        """
        grant = self.get_grant(grant_id)
        qty = _as_decimal(qty)

        if qty <= 0:
            raise InvalidOperationError(f"Exercise quantity must be positive, got {qty}")
        if qty > grant.qty:
            raise InvalidOperationError(
                f"Cannot exercise {qty} options - grant only has {grant.qty} options"
            )

        common_classes = self.list_security_classes("COMMON")
        if not common_classes:
            raise InvalidOperationError("No common stock class found for option exercise")

        issuance = self.issue_shares(
            common_classes[0].id,
            grant.stakeholder_id,
            qty,
            grant.exercise,
            exercise_date,
        )

        if qty == grant.qty:
            del self._grants[grant_id]
        else:
            self._grants[grant_id] = grant.model_copy(update={"qty": grant.qty - qty})
        self._audit("grant.exercise", grant_id, qty=qty, issuance=issuance.id)
        return issuance

    # =========================================================================
    # SAFEs
    # =========================================================================

    def add_safe(
        self,
        stakeholder_id: str,
        amount: Number,
        issue_date: Optional[DateLike] = None,
        cap: Optional[Number] = None,
        discount: Optional[Number] = None,
        type: Optional[Literal["pre", "post"]] = None,
        note: Optional[str] = None,
    ) -> SAFE:
        self.get_stakeholder(stakeholder_id)

        if discount is not None and not 0 <= _as_decimal(discount) <= 1:
            raise InvalidOperationError(
                "Discount must be between 0 and 1 (e.g., 0.8 for 20% discount)"
            )

        safe = SAFE(
            id=_new_id("safe"),
            stakeholder_id=stakeholder_id,
            amount=_as_decimal(amount),
            issue_date=_date_or_today(issue_date),
            cap=_as_decimal(cap) if cap is not None else None,
            discount=_as_decimal(discount) if discount is not None else None,
            type=type,
            note=note,
        )
        self._safes[safe.id] = safe
        self._audit("safe.create", safe.id, stakeholder=stakeholder_id, amount=safe.amount)
        return safe

    def get_safe(self, safe_id: str) -> SAFE:
        try:
            return self._safes[safe_id]
        except KeyError:
            raise RecordNotFoundError("SAFE", safe_id) from None

    def list_safes(self) -> List[SAFE]:
        return list(self._safes.values())

    def remove_safe(self, safe_id: str) -> None:
        self.get_safe(safe_id)
        del self._safes[safe_id]
        self._audit("safe.remove", safe_id)

    # =========================================================================
    # Queries
    # =========================================================================

    def holdings(self, stakeholder_id: str) -> StakeholderHoldings:
        stakeholder = self.get_stakeholder(stakeholder_id)
        return StakeholderHoldings(
            stakeholder=stakeholder,
            issuances=[i for i in self._issuances.values() if i.stakeholder_id == stakeholder_id],
            grants=[g for g in self._grants.values() if g.stakeholder_id == stakeholder_id],
            safes=[s for s in self._safes.values() if s.stakeholder_id == stakeholder_id],
        )
