"""Base classes for computation blocks.

This module provides the foundation for the blocks architecture:
- BlockContext: shared key/value store blocks read from and write to
- Block: abstract unit of computation with declared inputs and outputs
- topological_sort: orders blocks so producers run before consumers
- BlockExecutor: runs blocks in that order and checks their contracts
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)


# =============================================================================
# Block Context
# =============================================================================

@dataclass
class BlockContext:
    """Key/value store passed through a block run.

    Example:
        context = BlockContext()
        context.set("snapshot", repo.snapshot())
        context.set("as_of", "2025-01-01")

        CapTableBlock().execute(context)
        ownership_df = context.get("cap_table_ownership")
    """

    _data: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        """Value stored under ``key``.

        Raises:
            KeyError: If nothing is stored under ``key``
        """
        if key not in self._data:
            raise KeyError(f"Key '{key}' not found in context. Available keys: {list(self._data)}")
        return self._data[key]

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def has(self, key: str) -> bool:
        return key in self._data

    def keys(self) -> List[str]:
        return list(self._data)


# =============================================================================
# Block Base Class
# =============================================================================

class Block(ABC):
    """Abstract base class for computation blocks.

    Subclasses declare the context keys they read (``inputs``) and write
    (``outputs``) and implement ``execute``. The executor uses the
    declarations to order blocks and to check that every declared output
    was actually produced.
    """

    @abstractmethod
    def inputs(self) -> List[str]:
        """Context keys this block reads."""

    @abstractmethod
    def outputs(self) -> List[str]:
        """Context keys this block writes."""

    @abstractmethod
    def execute(self, context: BlockContext) -> None:
        """Read inputs from ``context``, compute, write outputs back."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(inputs={self.inputs()}, outputs={self.outputs()})"


# =============================================================================
# Dependency Resolution
# =============================================================================

class CircularDependencyError(Exception):
    """Raised when blocks depend on each other's outputs in a cycle."""
    pass


def topological_sort(blocks: List[Block]) -> List[Block]:
    """Order blocks so every block runs after the producers of its inputs.

    Kahn's algorithm; blocks with no pending dependencies keep their
    relative input order. Inputs no block produces are expected in the
    initial context.

    Raises:
        ValueError: If two blocks declare the same output key
        CircularDependencyError: If the dependency graph has a cycle
    """
    producers: Dict[str, Block] = {}
    for block in blocks:
        for key in block.outputs():
            if key in producers:
                raise ValueError(
                    f"Multiple blocks produce '{key}': {producers[key]} and {block}"
                )
            producers[key] = block

    pending: Dict[Block, int] = {block: 0 for block in blocks}
    dependents: Dict[Block, List[Block]] = {block: [] for block in blocks}
    for block in blocks:
        for key in block.inputs():
            producer = producers.get(key)
            if producer is not None:
                dependents[producer].append(block)
                pending[block] += 1

    ready: Deque[Block] = deque(block for block in blocks if pending[block] == 0)
    ordered: List[Block] = []
    while ready:
        current = ready.popleft()
        ordered.append(current)
        for dependent in dependents[current]:
            pending[dependent] -= 1
            if pending[dependent] == 0:
                ready.append(dependent)

    if len(ordered) != len(blocks):
        stuck = [block for block in blocks if pending[block] > 0]
        raise CircularDependencyError(f"Circular dependency detected among blocks: {stuck}")

    return ordered


# =============================================================================
# Block Executor
# =============================================================================

class BlockExecutor:
    """Runs blocks in dependency order.

    Example:
        executor = BlockExecutor([SAFEConversionBlock(), CapTableBlock(), VestingBlock()])
        context = BlockContext()
        context.set("snapshot", snapshot)
        context.set("as_of", "2025-01-01")
        context.set("round_terms", RoundTerms(pre_money_valuation=Decimal("10000000")))

        executor.execute(context)
        conversions_df = context.get("safe_conversions")
    """

    def __init__(self, blocks: List[Block]):
        self.blocks = blocks
        self._order: Optional[List[Block]] = None

    def execute(self, context: BlockContext) -> BlockContext:
        """Execute every block, validating inputs before and outputs after.

        Raises:
            CircularDependencyError: If blocks have circular dependencies
            KeyError: If a required input is missing from ``context``
            ValueError: If a block did not write a declared output
        """
        if self._order is None:
            self._order = topological_sort(self.blocks)

        for block in self._order:
            missing = [key for key in block.inputs() if not context.has(key)]
            if missing:
                raise KeyError(
                    f"Block {block} requires input '{missing[0]}' but it's not in context. "
                    f"Available keys: {context.keys()}"
                )

            logger.debug("Executing %r", block)
            block.execute(context)

            for key in block.outputs():
                if not context.has(key):
                    raise ValueError(
                        f"Block {block} declared output '{key}' but didn't write it to context"
                    )

        return context
