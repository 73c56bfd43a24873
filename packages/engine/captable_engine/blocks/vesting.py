"""Vesting computation block: per-grant vested/unvested breakdown."""

from typing import List
import pandas as pd

from .base import Block, BlockContext
from ..dates import format_utc_date, to_utc_date
from ..schemas import CapTableSnapshot
from ..vesting import grant_vesting

VESTING_COLUMNS = [
    "grant_id",
    "stakeholder_id",
    "name",
    "qty",
    "vested",
    "unvested",
    "vested_pct",
    "vesting_start",
    "months_total",
    "cliff_months",
]


class VestingBlock(Block):
    """Vesting status of every option grant as of a date.

    Inputs (from context):
        - snapshot: CapTableSnapshot
        - as_of: calculation date

    Outputs (to context):
        - vesting_by_grant: DataFrame with VESTING_COLUMNS in grant order.
          Schedule columns are None for grants without a vesting schedule.
    """

    def __init__(self, snapshot_key: str = "snapshot", as_of_key: str = "as_of"):
        self.snapshot_key = snapshot_key
        self.as_of_key = as_of_key

    def inputs(self) -> List[str]:
        return [self.snapshot_key, self.as_of_key]

    def outputs(self) -> List[str]:
        return ["vesting_by_grant"]

    def execute(self, context: BlockContext) -> None:
        snapshot: CapTableSnapshot = context.get(self.snapshot_key)
        as_of = to_utc_date(context.get(self.as_of_key))

        names = snapshot.stakeholder_names()
        rows = []
        for grant in snapshot.option_grants:
            vested, unvested = grant_vesting(grant, as_of)
            schedule = grant.vesting
            rows.append({
                "grant_id": grant.id,
                "stakeholder_id": grant.stakeholder_id,
                "name": names.get(grant.stakeholder_id, grant.stakeholder_id),
                "qty": float(grant.qty),
                "vested": float(vested),
                "unvested": float(unvested),
                "vested_pct": float(vested / grant.qty),
                "vesting_start": format_utc_date(schedule.start) if schedule else None,
                "months_total": schedule.months_total if schedule else None,
                "cliff_months": schedule.cliff_months if schedule else None,
            })

        context.set("vesting_by_grant", pd.DataFrame(rows, columns=VESTING_COLUMNS))
