"""Vesting calculator: cliff + linear-monthly schedules."""

from decimal import Decimal, ROUND_FLOOR
from typing import Optional, Tuple, Union

from .dates import DateLike, months_between
from .schemas import OptionGrant, Vesting

Quantity = Union[int, Decimal]


def _as_decimal(value: Union[int, float, Decimal]) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def vested_qty(as_of: DateLike, qty: Quantity, vesting: Optional[Vesting] = None) -> int:
    """Number of shares vested as of a date.

    Args:
        as_of: Calculation date (date or ``YYYY-MM-DD``)
        qty: Total shares under the schedule
        vesting: Schedule; a grant without one vests nothing

    Returns:
        floor(min(elapsed, months_total) / months_total * qty), or 0 before
        the cliff. Computed exactly, so the full ``qty`` is returned once
        ``months_total`` months have elapsed.

    Example:
        schedule = Vesting(start=date(2024, 1, 1), months_total=48, cliff_months=12)
        vested_qty("2024-12-31", 4800, schedule) → 0
        vested_qty("2025-01-01", 4800, schedule) → 1200
        vested_qty("2028-01-01", 4800, schedule) → 4800
    """
    if vesting is None:
        return 0

    elapsed = months_between(as_of, vesting.start)

    if elapsed < vesting.cliff_months:
        return 0

    progressed = min(elapsed, vesting.months_total)
    vested = Decimal(progressed) * _as_decimal(qty) / Decimal(vesting.months_total)
    return int(vested.to_integral_value(rounding=ROUND_FLOOR))


def grant_vesting(grant: OptionGrant, as_of: DateLike) -> Tuple[int, Decimal]:
    """Vested and unvested option counts for a single grant."""
    vested = vested_qty(as_of, grant.qty, grant.vesting)
    return vested, grant.qty - vested
