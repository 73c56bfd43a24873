"""Cap table engine schemas.

This package contains all Pydantic models used by the engine:
- Base types and conventions
- Stakeholders and security classes
- Issuances, option grants and vesting schedules
- SAFEs and round terms
- The immutable snapshot
- Result structures

Usage:
    from captable_engine.schemas import (
        CapTableSnapshot, SecurityClass, Issuance, OptionGrant, Vesting, SAFE
    )
"""

# Base types
from .base import (
    DomainModel,
    ShareCount,
    PositiveShareCount,
    MoneyAmount,
    PositiveMoneyAmount,
    DiscountFactor,
    Percentage,
    StakeholderId,
    SecurityClassId,
    RecordId,
)

# Stakeholders and security classes
from .security_classes import (
    Stakeholder,
    SecurityClass,
    SecurityKind,
    EntityType,
)

# Issuances and grants
from .equity import (
    Vesting,
    Issuance,
    OptionGrant,
)

# Instruments
from .instruments import (
    SAFE,
    RoundTerms,
)

# Snapshot
from .snapshot import (
    Company,
    CapTableSnapshot,
)

# Results
from .results import (
    ConversionReason,
    CapTableRow,
    FullyDilutedTotals,
    CapTableTotals,
    CapTableResult,
    SAFEConversion,
    StakeholderSAFEs,
    SAFESummary,
)

__all__ = [
    # Base types
    "DomainModel",
    "ShareCount",
    "PositiveShareCount",
    "MoneyAmount",
    "PositiveMoneyAmount",
    "DiscountFactor",
    "Percentage",
    "StakeholderId",
    "SecurityClassId",
    "RecordId",
    # Stakeholders and security classes
    "Stakeholder",
    "SecurityClass",
    "SecurityKind",
    "EntityType",
    # Issuances and grants
    "Vesting",
    "Issuance",
    "OptionGrant",
    # Instruments
    "SAFE",
    "RoundTerms",
    # Snapshot
    "Company",
    "CapTableSnapshot",
    # Results
    "ConversionReason",
    "CapTableRow",
    "FullyDilutedTotals",
    "CapTableTotals",
    "CapTableResult",
    "SAFEConversion",
    "StakeholderSAFEs",
    "SAFESummary",
]
