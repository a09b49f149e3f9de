"""Lifecycle states of a monthly summary.

A month is ``Open`` until it is closed, ``Closed`` while it waits for the
official ledger transfer and ``Transferred`` afterwards. Each state carries
exactly the timestamps that are meaningful for it.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, Optional, Union

OPEN = "open"
CLOSED = "closed"
TRANSFERRED = "transferred"


@dataclass(frozen=True)
class Open:
    status: ClassVar[str] = OPEN


@dataclass(frozen=True)
class Closed:
    closed_at: datetime
    closed_by: str

    status: ClassVar[str] = CLOSED


@dataclass(frozen=True)
class Transferred:
    closed_at: datetime
    closed_by: str
    transferred_at: datetime

    status: ClassVar[str] = TRANSFERRED


LifecycleState = Union[Open, Closed, Transferred]


def from_columns(
    status: str,
    closed_at: Optional[datetime],
    closed_by: Optional[str],
    transferred_at: Optional[datetime],
) -> LifecycleState:
    """Build the state from stored columns, rejecting illegal combinations."""
    if status == OPEN:
        if closed_at is not None or closed_by is not None or transferred_at is not None:
            raise ValueError("open month must not carry close or transfer metadata")
        return Open()
    if status == CLOSED:
        if closed_at is None or not closed_by or transferred_at is not None:
            raise ValueError("closed month requires closed_at and closed_by only")
        return Closed(closed_at=closed_at, closed_by=closed_by)
    if status == TRANSFERRED:
        if closed_at is None or not closed_by or transferred_at is None:
            raise ValueError("transferred month requires close and transfer metadata")
        return Transferred(closed_at=closed_at, closed_by=closed_by, transferred_at=transferred_at)
    raise ValueError(f"unknown lifecycle status '{status}'")


def to_columns(state: LifecycleState) -> dict:
    """Flatten a state into the column values stored on the summary row."""
    return {
        "status": state.status,
        "closed_at": getattr(state, "closed_at", None),
        "closed_by": getattr(state, "closed_by", None),
        "transferred_at": getattr(state, "transferred_at", None),
    }
