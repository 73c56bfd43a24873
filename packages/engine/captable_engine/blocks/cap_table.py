"""Cap table computation block.

Runs ``calc_cap`` on a snapshot and converts the result into DataFrames.

Output DataFrames:
- cap_table_ownership: Per-stakeholder outstanding and fully diluted holdings
- cap_table_summary: One row of totals
"""

from typing import List
import pandas as pd

from .base import Block, BlockContext
from ..cap_table import calc_cap
from ..schemas import CapTableResult

OWNERSHIP_COLUMNS = [
    "stakeholder_id",
    "name",
    "outstanding",
    "pct_outstanding",
    "fully_diluted",
    "pct_fully_diluted",
]


class CapTableBlock(Block):
    """Converts a snapshot into ownership DataFrames as of a date.

    Inputs (from context):
        - snapshot: CapTableSnapshot
        - as_of: calculation date (date or ``YYYY-MM-DD``)

    Outputs (to context):
        - cap_table_ownership: DataFrame with OWNERSHIP_COLUMNS, sorted by
          fully diluted holdings (largest first). Percentages are fractions
          (0.25 = 25%).
        - cap_table_summary: DataFrame with single row:
            * issued_total, vested_options, unvested_options,
              outstanding_total
            * fd_issued, fd_grants, fd_pool_remaining, fd_total
            * stakeholders: number of rows in the ownership table
        - cap_table_result: the underlying CapTableResult
    """

    def __init__(self, snapshot_key: str = "snapshot", as_of_key: str = "as_of"):
        self.snapshot_key = snapshot_key
        self.as_of_key = as_of_key

    def inputs(self) -> List[str]:
        return [self.snapshot_key, self.as_of_key]

    def outputs(self) -> List[str]:
        return [
            "cap_table_ownership",
            "cap_table_summary",
            "cap_table_result",
        ]

    def execute(self, context: BlockContext) -> None:
        result = calc_cap(context.get(self.snapshot_key), context.get(self.as_of_key))

        context.set("cap_table_result", result)
        context.set("cap_table_ownership", self._ownership_frame(result))
        context.set("cap_table_summary", self._summary_frame(result))

    def _ownership_frame(self, result: CapTableResult) -> pd.DataFrame:
        rows = [
            {
                "stakeholder_id": row.stakeholder_id,
                "name": row.name,
                "outstanding": float(row.outstanding),
                "pct_outstanding": float(row.pct_outstanding),
                "fully_diluted": float(row.fully_diluted),
                "pct_fully_diluted": float(row.pct_fully_diluted),
            }
            for row in result.rows
        ]
        # Rows arrive sorted; keep that order
        return pd.DataFrame(rows, columns=OWNERSHIP_COLUMNS)

    def _summary_frame(self, result: CapTableResult) -> pd.DataFrame:
        totals = result.totals
        return pd.DataFrame([{
            "issued_total": float(totals.issued_total),
            "vested_options": float(totals.vested_options),
            "unvested_options": float(totals.unvested_options),
            "outstanding_total": float(totals.outstanding_total),
            "fd_issued": float(totals.fd.issued),
            "fd_grants": float(totals.fd.grants),
            "fd_pool_remaining": float(totals.fd.pool_remaining),
            "fd_total": float(totals.fd.total_fd),
            "stakeholders": len(result.rows),
        }])
