"""Computation blocks for cap table analysis.

Blocks wrap the engine functions and turn their typed results into pandas
DataFrames for downstream consumption.

Architecture:
    Snapshot (records) → Blocks (engine calls) → DataFrames (output)

Available blocks:
- CapTableBlock: Outstanding and fully diluted ownership as of a date
- VestingBlock: Vested/unvested breakdown per option grant
- SAFEConversionBlock: SAFE conversions at a priced round

Usage:
    from captable_engine.blocks import BlockContext, BlockExecutor, CapTableBlock

    context = BlockContext()
    context.set("snapshot", snapshot)
    context.set("as_of", "2025-01-01")

    BlockExecutor([CapTableBlock()]).execute(context)
    ownership_df = context.get("cap_table_ownership")
"""

from .base import Block, BlockExecutor, BlockContext, CircularDependencyError
from .cap_table import CapTableBlock
from .vesting import VestingBlock
from .safe_conversion import SAFEConversionBlock

__all__ = [
    "Block",
    "BlockExecutor",
    "BlockContext",
    "CircularDependencyError",
    "CapTableBlock",
    "VestingBlock",
    "SAFEConversionBlock",
]
