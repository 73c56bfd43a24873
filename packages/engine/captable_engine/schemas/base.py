"""Base classes and type system for cap table engine models.

This module provides the foundational types and the shared base class
used throughout the cap table schema system.
"""

from decimal import Decimal
from typing import Annotated
from pydantic import BaseModel, Field, ConfigDict

# =============================================================================
# Base Model
# =============================================================================

class DomainModel(BaseModel):
    """Base class for all engine models.

    Records are immutable values: the engine reads them, the repository
    replaces them (``model_copy(update=...)``) instead of mutating in place.
    """

    model_config = ConfigDict(
        frozen=True,
        use_enum_values=True,
        arbitrary_types_allowed=True,
    )


# =============================================================================
# Type Aliases - Numeric
# =============================================================================

ShareCount = Annotated[
    Decimal,
    Field(ge=0, description="Number of shares (non-negative)")
]

PositiveShareCount = Annotated[
    Decimal,
    Field(gt=0, description="Number of shares (strictly positive)")
]

MoneyAmount = Annotated[
    Decimal,
    Field(ge=0, description="Currency amount (non-negative)")
]

PositiveMoneyAmount = Annotated[
    Decimal,
    Field(gt=0, description="Currency amount (strictly positive)")
]

DiscountFactor = Annotated[
    Decimal,
    Field(
        ge=0,
        le=1,
        description="Multiplier applied to the round price (0.8 = 20% discount)"
    )
]

Percentage = Annotated[
    Decimal,
    Field(ge=0, le=1, description="Percentage as decimal (0.0 to 1.0)")
]


# =============================================================================
# ID Conventions
# =============================================================================

StakeholderId = Annotated[
    str,
    Field(min_length=1, description="Stakeholder identifier (e.g., 'sh_3f2a...')")
]

SecurityClassId = Annotated[
    str,
    Field(min_length=1, description="Security class identifier (e.g., 'sc_91bc...')")
]

RecordId = Annotated[
    str,
    Field(min_length=1, description="Identifier for issuances, grants and SAFEs")
]


# =============================================================================
# ID Examples and Conventions
# =============================================================================
#
# Generated ids carry a prefix per record type followed by a uuid4 hex:
#   - "sh_..."   stakeholders
#   - "sc_..."   security classes (common, preferred, option pools)
#   - "is_..."   share issuances
#   - "og_..."   option grants
#   - "safe_..." SAFEs
#
# Caller-supplied ids are accepted as-is (e.g. "founder_alice").
#
# =============================================================================
