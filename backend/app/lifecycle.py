"""Lifecycle timestamp policy for tickets.

The functions here are pure: they receive the stored state of a ticket and the
facts about the status it is moving to, and return the timestamps that must be
persisted. The SQLAlchemy mapper events in :mod:`backend.app.models.ticket`
call them on every flush, so no code path can bypass the policy.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

UPDATED_AT_RESOLUTION = timedelta(microseconds=1)


class StatusRole(str, enum.Enum):
    """Semantic tag attached to each status, independent of its display name."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"
    NONE = "none"


class StampPolicy(str, enum.Enum):
    """How ``resolved_at``/``closed_at`` react to later status transitions.

    ``FIRST_OCCURRENCE`` records the first time a ticket was resolved or
    closed and never touches the stamp again, even if the ticket is reopened.
    ``CURRENT_STATE`` clears a stamp when the ticket leaves the matching state
    so the field always describes the present situation.
    """

    FIRST_OCCURRENCE = "first_occurrence"
    CURRENT_STATE = "current_state"


STAMP_POLICY = StampPolicy.FIRST_OCCURRENCE


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime, treating naive values as UTC."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class StatusFacts:
    """The parts of a status row that drive lifecycle stamps."""

    role: StatusRole
    is_closed: bool

    @property
    def resolves(self) -> bool:
        return self.role == StatusRole.RESOLVED

    @property
    def closes(self) -> bool:
        return self.is_closed or self.role == StatusRole.CLOSED


@dataclass(frozen=True)
class LifecycleStamps:
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None


def next_updated_at(previous: Optional[datetime], now: Optional[datetime] = None) -> datetime:
    """Return a modification time strictly greater than ``previous``."""

    current = as_utc(now) if now is not None else utcnow()
    previous = as_utc(previous)
    if previous is not None and current <= previous:
        return previous + UPDATED_AT_RESOLUTION
    return current


def apply_status_transition(
    stored: LifecycleStamps,
    target: Optional[StatusFacts],
    now: datetime,
    *,
    policy: Optional[StampPolicy] = None,
) -> LifecycleStamps:
    """Compute the stamps to persist after an update.

    ``target`` is ``None`` when the update does not change the status; the
    stored stamps are then kept untouched.
    """

    policy = policy or STAMP_POLICY
    if target is None:
        return stored

    resolved_at = stored.resolved_at
    closed_at = stored.closed_at

    if policy == StampPolicy.CURRENT_STATE:
        if not (target.resolves or target.closes):
            resolved_at = None
        if not target.closes:
            closed_at = None

    if target.resolves and resolved_at is None:
        resolved_at = now
    if target.closes and closed_at is None:
        closed_at = now
    return LifecycleStamps(resolved_at=resolved_at, closed_at=closed_at)
