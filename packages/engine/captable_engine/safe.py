"""SAFE conversion pricer.

Converts a SAFE into shares at the best (lowest) of three candidate prices:

    - Round price:    the priced round's price per share
    - Discount price: round price * discount multiplier
    - Cap price:      cap / pre-money shares (pre-money SAFE), or the price
                      solved against the post-conversion share count
                      (post-money SAFE)

Selection order is fixed: start from the round price, switch to the cap price
if it is strictly lower, then switch to the discount price if it is strictly
lower than whatever is selected at that point. Ties keep the earlier choice.

Example:
    SAFE $100K, cap $4M; round at $2.00 with 5M shares outstanding
    Cap price: $4M / 5M = $0.80 < $2.00 → 125,000 shares, reason "cap"
"""

import logging
from collections import OrderedDict
from decimal import Decimal, ROUND_FLOOR
from typing import List, Optional, Tuple, Union

from .schemas import (
    CapTableSnapshot,
    ConversionReason,
    RoundTerms,
    SAFE,
    SAFEConversion,
    SAFESummary,
    StakeholderSAFEs,
)

logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal]

MAX_SOLVER_ITERATIONS = 10
SOLVER_TOLERANCE = Decimal("0.01")
MIN_CONVERSION_PRICE = Decimal("0.000001")


def _as_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _floor(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


# =============================================================================
# Post-money cap solver
# =============================================================================

def solve_post_money_cap_price(
    amount: Decimal,
    cap: Decimal,
    existing_shares: Decimal,
    max_iterations: int = MAX_SOLVER_ITERATIONS,
    tolerance: Decimal = SOLVER_TOLERANCE,
) -> Optional[Tuple[Decimal, int]]:
    """Solve the post-money cap price by fixed-point iteration.

    A post-money cap values the company *including* the SAFE's own shares:
        price = cap / (existing_shares + shares)
        shares = amount / price

    Starting from the pre-money answer, the pair is recomputed until the
    share count moves by less than ``tolerance`` or ``max_iterations``
    rounds have run.

    Args:
        amount: SAFE investment amount
        cap: Post-money valuation cap
        existing_shares: Shares outstanding before conversion

    Returns:
        (price, whole shares), or None when the cap price does not apply
        (no existing shares or a zero cap).

    Note:
        The closed form ``amount * existing / (cap - amount)`` is not used;
        results keep the iterative approximation and its rounding.
    """
    if existing_shares == 0 or cap == 0:
        return None

    shares = amount / (cap / existing_shares)

    for iteration in range(max_iterations):
        price = cap / (existing_shares + shares)
        new_shares = amount / price

        if abs(new_shares - shares) < tolerance:
            logger.debug(
                "Post-money cap price converged after %d iterations: price=%s shares=%s",
                iteration + 1, price, new_shares,
            )
            return price, _floor(new_shares)

        shares = new_shares

    final_price = cap / (existing_shares + shares)
    logger.debug(
        "Post-money cap price did not converge in %d iterations; using price=%s",
        max_iterations, final_price,
    )
    return final_price, _floor(amount / final_price)


# =============================================================================
# Conversion
# =============================================================================

def convert_safe(
    safe: SAFE,
    price_per_share: Number,
    pre_money_shares: Number,
    is_post_money: bool = False,
) -> SAFEConversion:
    """Convert a SAFE into shares at the priced round.

    Args:
        safe: SAFE being converted
        price_per_share: Round price per share
        pre_money_shares: Shares outstanding before the round (cap basis)
        is_post_money: Treat the cap as post-money. A SAFE whose own
            ``type`` is ``"post"`` is always treated as post-money.

    Returns:
        SAFEConversion with whole ``shares_issued``, the winning
        ``conversion_price`` and the ``conversion_reason``.

    Edge cases (no exceptions are raised):
        - amount <= 0 → 0 shares at the round price, reason "price"
        - price <= 0 with no usable cap → 0 shares at price 0, reason "price"
        - a selected price <= 0 is clamped to its absolute value (or
          MIN_CONVERSION_PRICE when zero) before shares are computed
    """
    pps = _as_decimal(price_per_share)
    existing = _as_decimal(pre_money_shares)
    amount = safe.amount
    cap = safe.cap
    discount = safe.discount

    def conversion(shares: int, price: Decimal, reason: ConversionReason) -> SAFEConversion:
        return SAFEConversion(
            safe_id=safe.id,
            stakeholder_id=safe.stakeholder_id,
            investment_amount=amount,
            shares_issued=shares,
            conversion_price=price,
            conversion_reason=reason,
        )

    if amount <= 0:
        return conversion(0, pps, "price")

    cap_usable = cap is not None and cap > 0 and existing > 0
    if pps <= 0 and not cap_usable:
        return conversion(0, Decimal("0"), "price")

    discount_price = pps * discount if discount is not None and discount > 0 else pps

    cap_price: Optional[Decimal] = None
    cap_shares = 0
    if cap_usable:
        if is_post_money or safe.is_post_money:
            solved = solve_post_money_cap_price(amount, cap, existing)
            if solved is not None:
                cap_price, cap_shares = solved
        else:
            cap_price = cap / existing
            cap_shares = _floor(amount / cap_price)

    effective_price = pps
    shares_issued = _floor(amount / pps) if pps > 0 else 0
    reason: ConversionReason = "price"

    if cap_price is not None and 0 < cap_price < effective_price:
        effective_price = cap_price
        shares_issued = cap_shares
        reason = "cap"

    if discount is not None and 0 < discount_price < effective_price:
        effective_price = discount_price
        shares_issued = _floor(amount / discount_price)
        reason = "discount"

    if effective_price <= 0:
        effective_price = abs(effective_price) or MIN_CONVERSION_PRICE
        shares_issued = _floor(amount / effective_price)

    return conversion(shares_issued, effective_price, reason)


def simulate_conversion(snapshot: CapTableSnapshot, round_terms: RoundTerms) -> List[SAFEConversion]:
    """Convert every SAFE in the snapshot against a priced round.

    The cap basis is the current non-pool issued share count. If the round
    terms carry no explicit price, it is derived as pre-money valuation
    divided by that count (0 when nothing has been issued yet).

    Returns:
        One SAFEConversion per SAFE, in snapshot order, with the
        stakeholder's display name filled in ("Unknown" if unresolved).
    """
    current_shares = snapshot.outstanding_issued_shares()

    if round_terms.price_per_share is not None:
        pps = round_terms.price_per_share
    elif current_shares > 0:
        pps = round_terms.pre_money_valuation / current_shares
    else:
        pps = Decimal("0")

    logger.debug(
        "Simulating %d SAFE conversions at price=%s with %s shares outstanding",
        len(snapshot.safes), pps, current_shares,
    )

    names = snapshot.stakeholder_names()
    conversions: List[SAFEConversion] = []
    for safe in snapshot.safes:
        result = convert_safe(safe, pps, current_shares, safe.is_post_money)
        conversions.append(
            result.model_copy(update={"stakeholder_name": names.get(safe.stakeholder_id, "Unknown")})
        )

    return conversions


def summarize_safes(snapshot: CapTableSnapshot) -> SAFESummary:
    """Total SAFE investment, grouped by stakeholder in order of first appearance."""
    grouped: "OrderedDict[str, List[SAFE]]" = OrderedDict()
    for safe in snapshot.safes:
        grouped.setdefault(safe.stakeholder_id, []).append(safe)

    names = snapshot.stakeholder_names()
    by_stakeholder = []
    for stakeholder_id, safes in grouped.items():
        by_stakeholder.append(
            StakeholderSAFEs(
                stakeholder_id=stakeholder_id,
                stakeholder_name=names.get(stakeholder_id, "Unknown"),
                amount=sum((s.amount for s in safes), Decimal("0")),
                safes=tuple(safes),
            )
        )

    return SAFESummary(
        count=len(snapshot.safes),
        total_amount=sum((s.amount for s in snapshot.safes), Decimal("0")),
        by_stakeholder=tuple(by_stakeholder),
    )
