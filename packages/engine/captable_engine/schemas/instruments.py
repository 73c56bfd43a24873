"""Convertible instruments and the round terms they convert against.

SAFEs (Simple Agreements for Future Equity) are investments that convert to
equity at the next priced round. The conversion price is the best (lowest) of
the round price, the discounted round price and the valuation-cap price.
"""

from typing import Literal, Optional
from datetime import date
from decimal import Decimal
from pydantic import Field

from .base import (
    DomainModel,
    RecordId,
    StakeholderId,
    MoneyAmount,
    PositiveMoneyAmount,
    DiscountFactor,
)


# =============================================================================
# SAFE
# =============================================================================

class SAFE(DomainModel):
    """Simple Agreement for Future Equity.

    Key mechanics:
        - Converts at the next priced round
        - Valuation cap: price = cap / shares (pre-money), or solved against
          the post-conversion share count (post-money)
        - Discount: price = round price * discount (a multiplier, so 0.8
          means the holder pays 80% of the round price)
        - With both cap and discount the holder gets whichever price is lower

    Example with both cap and discount:
        SAFE: $100K investment, $4M cap, 0.8 discount
        Round: $2.00/share, 5M shares outstanding

        Via cap:      $4M / 5M = $0.80 → 125,000 shares
        Via discount: $2.00 * 0.8 = $1.60 → 62,500 shares

        The cap wins (lower price, more shares).
    """

    id: RecordId
    stakeholder_id: StakeholderId
    amount: PositiveMoneyAmount = Field(description="Amount invested")
    issue_date: date
    cap: Optional[PositiveMoneyAmount] = Field(
        default=None,
        description="Valuation cap for conversion"
    )
    discount: Optional[DiscountFactor] = Field(
        default=None,
        description="Round-price multiplier (0.8 = 20% discount)"
    )
    type: Optional[Literal["pre", "post"]] = Field(
        default=None,
        description="Whether the cap is measured pre- or post-money (None = pre)"
    )
    note: Optional[str] = None

    @property
    def is_post_money(self) -> bool:
        return self.type == "post"


# =============================================================================
# Round Terms
# =============================================================================

class RoundTerms(DomainModel):
    """Terms of the priced round SAFEs convert into.

    If ``price_per_share`` is not given it is derived as
    ``pre_money_valuation / current outstanding shares``.
    """

    pre_money_valuation: MoneyAmount
    new_money_raised: MoneyAmount = Decimal("0")
    price_per_share: Optional[Decimal] = Field(default=None, gt=0)
