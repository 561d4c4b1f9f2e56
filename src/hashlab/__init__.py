"""Hash table strategy lab: pluggable collision resolution with probe traces."""

from . import analysis, contracts, core
from .core import OperationResult, Status, StrategyName, TableEngine

__all__ = [
    "analysis",
    "contracts",
    "core",
    "OperationResult",
    "Status",
    "StrategyName",
    "TableEngine",
]
