"""Typed result structures returned by the engine."""

from typing import Literal, Tuple
from decimal import Decimal
from pydantic import Field

from .base import DomainModel, ShareCount
from .instruments import SAFE


ConversionReason = Literal["cap", "discount", "price"]


# =============================================================================
# Cap Table
# =============================================================================

class CapTableRow(DomainModel):
    """One stakeholder's ownership as of the calculation date."""

    stakeholder_id: str
    name: str
    outstanding: ShareCount = Field(description="Issued shares plus vested options")
    pct_outstanding: Decimal = Field(description="outstanding / outstanding_total")
    fully_diluted: ShareCount = Field(description="Issued shares plus all granted options")
    pct_fully_diluted: Decimal = Field(description="fully_diluted / total_fd")


class FullyDilutedTotals(DomainModel):
    issued: ShareCount
    grants: ShareCount
    pool_remaining: ShareCount
    total_fd: ShareCount


class CapTableTotals(DomainModel):
    issued_total: ShareCount
    vested_options: ShareCount
    unvested_options: ShareCount
    outstanding_total: ShareCount
    fd: FullyDilutedTotals


class CapTableResult(DomainModel):
    """Output of ``calc_cap``: rows sorted by fully diluted holdings."""

    rows: Tuple[CapTableRow, ...]
    totals: CapTableTotals


# =============================================================================
# SAFE Conversion
# =============================================================================

class SAFEConversion(DomainModel):
    """Result of converting one SAFE against a priced round.

    ``conversion_reason`` names the price that won: the valuation ``cap``,
    the ``discount`` or the plain round ``price``.
    """

    safe_id: str
    stakeholder_id: str
    stakeholder_name: str = ""
    investment_amount: Decimal
    shares_issued: int = Field(ge=0)
    conversion_price: Decimal
    conversion_reason: ConversionReason


class StakeholderSAFEs(DomainModel):
    stakeholder_id: str
    stakeholder_name: str
    amount: Decimal
    safes: Tuple[SAFE, ...]


class SAFESummary(DomainModel):
    count: int
    total_amount: Decimal
    by_stakeholder: Tuple[StakeholderSAFEs, ...]
