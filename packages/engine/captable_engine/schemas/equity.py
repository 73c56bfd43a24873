"""Share issuances, option grants and vesting schedules.

Issuances are shares actually held. Option grants are rights to buy shares
that vest over time; the vested portion counts toward outstanding ownership
and the full grant counts toward fully diluted ownership.
"""

from typing import Optional
from datetime import date
from decimal import Decimal
from pydantic import Field, model_validator

from .base import (
    DomainModel,
    RecordId,
    StakeholderId,
    SecurityClassId,
    PositiveShareCount,
    MoneyAmount,
)


# =============================================================================
# Vesting
# =============================================================================

class Vesting(DomainModel):
    """Cliff + linear-monthly vesting schedule.

    Nothing vests until ``cliff_months`` whole months have elapsed since
    ``start``; from then on the vested fraction is
    ``min(elapsed, months_total) / months_total``.

    Example:
        4-year schedule with a 1-year cliff:
            Vesting(start=date(2024, 1, 1), months_total=48, cliff_months=12)

        On 2025-01-01, 12/48 = 25% is vested. On 2028-01-01, 100%.
    """

    start: date = Field(description="Vesting commencement date")
    months_total: int = Field(gt=0, description="Total vesting period in months")
    cliff_months: int = Field(default=0, ge=0, description="Cliff period in months")

    @model_validator(mode='after')
    def validate_cliff(self):
        """Cliff cannot be longer than the whole schedule."""
        if self.cliff_months > self.months_total:
            raise ValueError(
                f"cliff_months ({self.cliff_months}) cannot exceed months_total ({self.months_total})"
            )
        return self


# =============================================================================
# Issuance
# =============================================================================

class Issuance(DomainModel):
    """Shares of a security class issued to a stakeholder."""

    id: RecordId
    security_class_id: SecurityClassId
    stakeholder_id: StakeholderId
    qty: PositiveShareCount = Field(description="Number of shares issued")
    pps: Optional[MoneyAmount] = Field(
        default=None,
        description="Price per share paid (None = no cost, e.g., founder shares)"
    )
    issue_date: date
    cert: Optional[str] = Field(default=None, description="Certificate number")

    def cost_basis(self) -> Optional[Decimal]:
        """Total price paid for the issuance, or None for zero-cost shares."""
        if self.pps is None:
            return None
        return self.pps * self.qty


# =============================================================================
# Option Grant
# =============================================================================

class OptionGrant(DomainModel):
    """Options granted to a stakeholder out of the option pool.

    A grant without a ``vesting`` schedule vests nothing in the engine: its
    full quantity is fully diluted but none of it is outstanding.
    """

    id: RecordId
    stakeholder_id: StakeholderId
    qty: PositiveShareCount = Field(description="Number of options granted")
    exercise: Decimal = Field(gt=0, description="Exercise (strike) price per share")
    grant_date: date
    vesting: Optional[Vesting] = None

    def total_exercise_cost(self) -> Decimal:
        return self.exercise * self.qty
