"""Cap Table Engine - deterministic cap table calculations.

This package provides:
- UTC date helpers (parse/format, whole-month differences)
- Vesting calculation (cliff + linear monthly)
- SAFE conversion pricing (round / discount / cap, pre- and post-money)
- Cap table aggregation (outstanding and fully diluted ownership)
- A boundary validator and an in-memory repository for record lifecycle

The calculation layer is designed to be:
- Pure (no I/O, no mutation of its inputs)
- Deterministic (same snapshot + same date → same result)
- Testable (plain Python over Pydantic models)
"""

from .schemas import *  # noqa: F403, F401
from .dates import (  # noqa: F401
    parse_utc_date,
    format_utc_date,
    is_valid_iso_date,
    months_between,
    get_today_utc,
)
from .vesting import vested_qty, grant_vesting  # noqa: F401
from .safe import convert_safe, simulate_conversion, summarize_safes  # noqa: F401
from .cap_table import calc_cap  # noqa: F401
from .validation import validate_snapshot, validate_payload  # noqa: F401
from .repository import CapTableRepository  # noqa: F401

__version__ = "0.1.0"
