"""SAFE conversion block.

Simulates converting every SAFE in a snapshot at a priced round and
exposes the result as a DataFrame, plus a one-row round summary.
"""

from decimal import Decimal
from typing import List
import pandas as pd

from .base import Block, BlockContext
from ..safe import simulate_conversion
from ..schemas import CapTableSnapshot, RoundTerms

CONVERSION_COLUMNS = [
    "safe_id",
    "stakeholder_id",
    "stakeholder_name",
    "investment_amount",
    "shares_issued",
    "conversion_price",
    "conversion_reason",
]


class SAFEConversionBlock(Block):
    """Converts SAFEs against round terms.

    Inputs (from context):
        - snapshot: CapTableSnapshot
        - round_terms: RoundTerms

    Outputs (to context):
        - safe_conversions: DataFrame with CONVERSION_COLUMNS, one row per SAFE
        - safe_conversion_summary: DataFrame with single row:
            * safes: number of SAFEs converted
            * total_investment: sum of SAFE amounts
            * total_shares: sum of shares issued
            * pre_money_shares: non-pool shares outstanding before conversion
            * post_conversion_shares: pre_money_shares + total_shares

    Example:
        Founders hold 8M shares; one $500K SAFE at $5M pre-money cap and a
        round at $1.50/share → cap price $0.625, 800,000 shares.
    """

    def __init__(self, snapshot_key: str = "snapshot", round_terms_key: str = "round_terms"):
        self.snapshot_key = snapshot_key
        self.round_terms_key = round_terms_key

    def inputs(self) -> List[str]:
        return [self.snapshot_key, self.round_terms_key]

    def outputs(self) -> List[str]:
        return ["safe_conversions", "safe_conversion_summary"]

    def execute(self, context: BlockContext) -> None:
        snapshot: CapTableSnapshot = context.get(self.snapshot_key)
        round_terms: RoundTerms = context.get(self.round_terms_key)

        conversions = simulate_conversion(snapshot, round_terms)

        df = pd.DataFrame(
            [
                {
                    "safe_id": c.safe_id,
                    "stakeholder_id": c.stakeholder_id,
                    "stakeholder_name": c.stakeholder_name,
                    "investment_amount": float(c.investment_amount),
                    "shares_issued": c.shares_issued,
                    "conversion_price": float(c.conversion_price),
                    "conversion_reason": c.conversion_reason,
                }
                for c in conversions
            ],
            columns=CONVERSION_COLUMNS,
        )
        context.set("safe_conversions", df)

        pre_money_shares = snapshot.outstanding_issued_shares()
        total_shares = sum(c.shares_issued for c in conversions)
        context.set("safe_conversion_summary", pd.DataFrame([{
            "safes": len(conversions),
            "total_investment": float(sum((c.investment_amount for c in conversions), Decimal("0"))),
            "total_shares": total_shares,
            "pre_money_shares": float(pre_money_shares),
            "post_conversion_shares": float(pre_money_shares + total_shares),
        }]))
