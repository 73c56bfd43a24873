"""Immutable cap table snapshot passed into the engine.

A snapshot bundles every record needed for one calculation pass. It is a
frozen value with tuple collections: the engine only reads it, and the
repository builds a fresh snapshot whenever records change.
"""

from typing import Dict, Optional, Tuple
from datetime import date
from decimal import Decimal
from pydantic import Field

from .base import DomainModel
from .security_classes import EntityType, SecurityClass, Stakeholder
from .equity import Issuance, OptionGrant
from .instruments import SAFE


# =============================================================================
# Company
# =============================================================================

class Company(DomainModel):
    """Company metadata carried alongside the records."""

    id: str = Field(default="company")
    name: str = Field(min_length=1, description="Company legal name")
    formation_date: Optional[date] = None
    entity_type: Optional[EntityType] = None
    jurisdiction: Optional[str] = None
    currency: str = Field(default="USD", description="ISO 4217 currency code")


# =============================================================================
# Cap Table Snapshot
# =============================================================================

class CapTableSnapshot(DomainModel):
    """Point-in-time bundle of all cap table records.

    Key properties:
        - Immutable (frozen model, tuple collections)
        - Reproducible (same snapshot + same as-of date → same results)
        - Safe to share between concurrent readers

    Usage:
        snapshot = repository.snapshot()
        result = calc_cap(snapshot, "2025-01-01")

    Referential integrity (every stakeholder/security class reference
    resolves) is the caller's responsibility; see ``validate_snapshot``.
    """

    company: Company = Field(default_factory=lambda: Company(name="Company"))
    stakeholders: Tuple[Stakeholder, ...] = ()
    security_classes: Tuple[SecurityClass, ...] = ()
    issuances: Tuple[Issuance, ...] = ()
    option_grants: Tuple[OptionGrant, ...] = ()
    safes: Tuple[SAFE, ...] = ()

    def stakeholder(self, stakeholder_id: str) -> Optional[Stakeholder]:
        return self._stakeholders_by_id().get(stakeholder_id)

    def security_class(self, security_class_id: str) -> Optional[SecurityClass]:
        return self._classes_by_id().get(security_class_id)

    def stakeholder_name(self, stakeholder_id: str) -> str:
        """Display name for a stakeholder, falling back to the raw id."""
        stakeholder = self.stakeholder(stakeholder_id)
        return stakeholder.name if stakeholder else stakeholder_id

    def stakeholder_names(self) -> Dict[str, str]:
        """id → display name for every stakeholder. Build once per pass, not per row."""
        return {s.id: s.name for s in self.stakeholders}

    def option_pools(self) -> Tuple[SecurityClass, ...]:
        return tuple(sc for sc in self.security_classes if sc.kind == "OPTION_POOL")

    def outstanding_issued_shares(self) -> Decimal:
        """Total shares issued outside option pools (options excluded)."""
        classes = self._classes_by_id()
        total = Decimal("0")
        for issuance in self.issuances:
            security_class = classes.get(issuance.security_class_id)
            if security_class and security_class.kind != "OPTION_POOL":
                total += issuance.qty
        return total

    def _stakeholders_by_id(self) -> Dict[str, Stakeholder]:
        return {s.id: s for s in self.stakeholders}

    def _classes_by_id(self) -> Dict[str, SecurityClass]:
        return {sc.id: sc for sc in self.security_classes}
