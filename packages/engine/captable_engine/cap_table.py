"""Cap table aggregator.

Walks a snapshot's issuances, option grants and option pools as of a date and
produces per-stakeholder and total ownership.

Two views are computed:
    - Outstanding: issued shares + vested options
    - Fully diluted: issued shares + all granted options + remaining pool

Example:
    7M founder shares, 500K options (fully vested), 2M share pool
    Outstanding:   7M + 500K = 7.5M
    Fully diluted: 7M + 500K + (2M - 500K) = 9M
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List

from .dates import DateLike, to_utc_date
from .schemas import (
    CapTableResult,
    CapTableRow,
    CapTableSnapshot,
    CapTableTotals,
    FullyDilutedTotals,
)
from .vesting import vested_qty

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class _Bucket:
    name: str
    outstanding: Decimal = ZERO
    fully_diluted: Decimal = ZERO


def _ratio(part: Decimal, total: Decimal) -> Decimal:
    return part / total if total else ZERO


def calc_cap(snapshot: CapTableSnapshot, as_of: DateLike) -> CapTableResult:
    """Compute ownership for every stakeholder as of a date.

    Args:
        snapshot: Records to aggregate (not modified)
        as_of: Calculation date (date or ``YYYY-MM-DD``)

    Returns:
        CapTableResult with rows sorted by fully diluted holdings (largest
        first, ties by stakeholder id) and the outstanding/fully diluted
        totals.

    Note:
        Issuances against OPTION_POOL classes, or against a class id that
        does not resolve, are skipped. Grants without a vesting schedule
        contribute nothing to outstanding.
    """
    as_of_date = to_utc_date(as_of)
    classes = {sc.id: sc for sc in snapshot.security_classes}
    names = snapshot.stakeholder_names()
    buckets: Dict[str, _Bucket] = {}

    def bucket_for(stakeholder_id: str) -> _Bucket:
        if stakeholder_id not in buckets:
            buckets[stakeholder_id] = _Bucket(name=names.get(stakeholder_id, stakeholder_id))
        return buckets[stakeholder_id]

    # Step 1: Issued shares
    issued_total = ZERO
    for issuance in snapshot.issuances:
        security_class = classes.get(issuance.security_class_id)
        if security_class is None or security_class.kind == "OPTION_POOL":
            continue

        issued_total += issuance.qty
        bucket = bucket_for(issuance.stakeholder_id)
        bucket.outstanding += issuance.qty
        bucket.fully_diluted += issuance.qty

    # Step 2: Option grants (vested → outstanding, full grant → fully diluted)
    grants_total = ZERO
    vested_total = ZERO
    unvested_total = ZERO
    for grant in snapshot.option_grants:
        vested = vested_qty(as_of_date, grant.qty, grant.vesting)

        grants_total += grant.qty
        vested_total += vested
        unvested_total += grant.qty - vested

        bucket = bucket_for(grant.stakeholder_id)
        bucket.outstanding += vested
        bucket.fully_diluted += grant.qty

    # Step 3: Remaining option pool
    pool_authorized = sum((pool.authorized for pool in snapshot.option_pools()), ZERO)
    pool_remaining = max(ZERO, pool_authorized - grants_total)

    # Step 4: Totals
    outstanding_total = issued_total + vested_total
    fd_total = issued_total + grants_total + pool_remaining

    # Step 5: Percentages, largest fully diluted holding first
    rows: List[CapTableRow] = [
        CapTableRow(
            stakeholder_id=stakeholder_id,
            name=bucket.name,
            outstanding=bucket.outstanding,
            pct_outstanding=_ratio(bucket.outstanding, outstanding_total),
            fully_diluted=bucket.fully_diluted,
            pct_fully_diluted=_ratio(bucket.fully_diluted, fd_total),
        )
        for stakeholder_id, bucket in buckets.items()
    ]
    rows.sort(key=lambda row: (-row.fully_diluted, row.stakeholder_id))

    logger.debug(
        "Cap table as of %s: %d rows, outstanding=%s fully_diluted=%s",
        as_of_date, len(rows), outstanding_total, fd_total,
    )

    return CapTableResult(
        rows=tuple(rows),
        totals=CapTableTotals(
            issued_total=issued_total,
            vested_options=vested_total,
            unvested_options=unvested_total,
            outstanding_total=outstanding_total,
            fd=FullyDilutedTotals(
                issued=issued_total,
                grants=grants_total,
                pool_remaining=pool_remaining,
                total_fd=fd_total,
            ),
        ),
    )
