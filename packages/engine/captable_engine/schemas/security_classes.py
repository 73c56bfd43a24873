"""Stakeholders and security classes.

A security class defines the "type" of equity that can be held and how many
units of it the company has authorized. Option pools are modeled as a
security class of kind ``OPTION_POOL``: their authorized amount is the
capacity available for option grants, never issued directly.
"""

from typing import Optional, Literal
from decimal import Decimal
from pydantic import EmailStr, Field, field_validator

from .base import DomainModel, StakeholderId, SecurityClassId


SecurityKind = Literal["COMMON", "PREFERRED", "OPTION_POOL"]

EntityType = Literal["C_CORP", "S_CORP", "LLC"]


# =============================================================================
# Stakeholder
# =============================================================================

class Stakeholder(DomainModel):
    """A person or entity that holds (or may hold) equity.

    Examples:
        Founder: Stakeholder(id="founder_alice", type="person", name="Alice")
        Fund:    Stakeholder(id="acme_vc", type="entity", name="Acme Ventures")
    """

    id: StakeholderId
    type: Literal["person", "entity"] = Field(
        default="person",
        description="Natural person or legal entity"
    )
    name: str = Field(min_length=1, description="Display name")
    email: Optional[EmailStr] = Field(default=None, description="Contact email")

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_absent(cls, v):
        """An empty string means no email on file."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


# =============================================================================
# Security Class
# =============================================================================

class SecurityClass(DomainModel):
    """A class of equity with an authorized share count.

    Kinds:
        - COMMON: Common stock (or LLC units)
        - PREFERRED: Preferred stock issued to investors
        - OPTION_POOL: Reserve for option grants. Issuances against a pool
          are ignored by the aggregator; the pool's authorized amount minus
          all grants is the remaining pool in the fully diluted count.

    Invariant (enforced by the repository and the boundary validator, not
    by the engine): issued shares never exceed ``authorized``.
    """

    id: SecurityClassId
    kind: SecurityKind = Field(description="Fundamental security category")
    label: str = Field(min_length=1, description="Human-readable name (e.g., 'Common Stock')")
    authorized: Decimal = Field(gt=0, description="Authorized share count")
    par_value: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Par value per share, if any"
    )

    @property
    def is_option_pool(self) -> bool:
        return self.kind == "OPTION_POOL"
