"""Pydantic models for sessionsort."""

from .item import Group, GroupingResult, Item, ScanError, ScanResult, sort_items
from .run import (
    EXIT_CANCELLED,
    EXIT_OK,
    EXIT_SETUP_ERROR,
    CopyOutcome,
    CopyStatus,
    NoisePolicy,
    RunStatus,
    RunSummary,
)

__all__ = [
    "CopyOutcome",
    "CopyStatus",
    "EXIT_CANCELLED",
    "EXIT_OK",
    "EXIT_SETUP_ERROR",
    "Group",
    "GroupingResult",
    "Item",
    "NoisePolicy",
    "RunStatus",
    "RunSummary",
    "ScanError",
    "ScanResult",
    "sort_items",
]
