"""Human readable ticket numbers scoped to the creation day.

Numbers look like ``SD-20240101-0001``. The sequence part comes from the
``ticket_daily_sequences`` table, incremented with a single atomic statement so
two concurrent creators can never be handed the same value.
"""

from __future__ import annotations

import logging
import os
from datetime import date, datetime
from typing import Iterable, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.engine import Connection

LOGGER = logging.getLogger(__name__)

PREFIX_ENV = "TICKET_NUMBER_PREFIX"
DEFAULT_PREFIX = "SD"
SEQUENCE_WIDTH = 4


def _read_prefix() -> str:
    raw = os.getenv(PREFIX_ENV)
    if raw is None:
        return DEFAULT_PREFIX
    value = raw.strip()
    if not value or "-" in value:
        LOGGER.warning("Invalid %s=%r; falling back to %s", PREFIX_ENV, raw, DEFAULT_PREFIX)
        return DEFAULT_PREFIX
    return value


TICKET_NUMBER_PREFIX = _read_prefix()


def day_prefix(day: date, prefix: Optional[str] = None) -> str:
    """Return the ``PREFIX-YYYYMMDD-`` part shared by every ticket of ``day``."""

    return f"{prefix or TICKET_NUMBER_PREFIX}-{day.strftime('%Y%m%d')}-"


def format_ticket_number(day: date, sequence: int, prefix: Optional[str] = None) -> str:
    # Values above 9999 simply widen the suffix.
    return f"{day_prefix(day, prefix)}{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(ticket_number: str, day: date, prefix: Optional[str] = None) -> Optional[int]:
    """Extract the sequence of ``ticket_number`` if it belongs to ``day``."""

    expected = day_prefix(day, prefix)
    if not ticket_number.startswith(expected):
        return None
    suffix = ticket_number[len(expected):]
    if not suffix.isdecimal():
        return None
    return int(suffix)


def parse_ticket_number(
    ticket_number: str, prefix: Optional[str] = None
) -> Optional[Tuple[date, int]]:
    """Split a generated-style number into its day and sequence, ``None`` for other formats."""

    head = f"{prefix or TICKET_NUMBER_PREFIX}-"
    if not ticket_number.startswith(head):
        return None
    day_part, _, suffix = ticket_number[len(head):].partition("-")
    if len(day_part) != 8 or not day_part.isdecimal() or not suffix.isdecimal():
        return None
    try:
        day = datetime.strptime(day_part, "%Y%m%d").date()
    except ValueError:
        return None
    return day, int(suffix)


def highest_sequence(ticket_numbers: Iterable[str], day: date, prefix: Optional[str] = None) -> int:
    sequences = [
        value
        for value in (parse_sequence(number, day, prefix) for number in ticket_numbers)
        if value is not None
    ]
    return max(sequences, default=0)


def _seed_from_existing(connection: Connection, day: date, prefix: str) -> int:
    from .models.ticket import Ticket

    tickets = Ticket.__table__
    pattern = day_prefix(day, prefix).replace("_", "\\_").replace("%", "\\%") + "%"
    numbers = connection.execute(
        select(tickets.c.ticket_number).where(
            tickets.c.ticket_number.like(pattern, escape="\\")
        )
    ).scalars()
    return highest_sequence(numbers, day, prefix)


def _upsert_statement(connection: Connection, day: date, first_value: int):
    from .models.ticket import TicketDailySequence

    sequences = TicketDailySequence.__table__
    dialect = connection.dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        return None

    statement = insert(sequences).values(sequence_date=day, last_value=first_value)
    return statement.on_conflict_do_update(
        index_elements=[sequences.c.sequence_date],
        set_={"last_value": sequences.c.last_value + 1},
    ).returning(sequences.c.last_value)


def _increment_with_row_lock(connection: Connection, day: date, first_value: int) -> int:
    from .models.ticket import TicketDailySequence

    sequences = TicketDailySequence.__table__
    current = connection.execute(
        select(sequences.c.last_value)
        .where(sequences.c.sequence_date == day)
        .with_for_update()
    ).scalar_one_or_none()
    if current is None:
        connection.execute(
            sequences.insert().values(sequence_date=day, last_value=first_value)
        )
        return first_value
    connection.execute(
        sequences.update()
        .where(sequences.c.sequence_date == day)
        .values(last_value=current + 1)
    )
    return current + 1


def next_sequence(connection: Connection, day: date, prefix: Optional[str] = None) -> int:
    """Atomically reserve the next sequence value for ``day``."""

    from .models.ticket import TicketDailySequence

    prefix = prefix or TICKET_NUMBER_PREFIX
    sequences = TicketDailySequence.__table__
    has_counter = connection.execute(
        select(sequences.c.sequence_date).where(sequences.c.sequence_date == day)
    ).first()
    first_value = 1 if has_counter else _seed_from_existing(connection, day, prefix) + 1

    statement = _upsert_statement(connection, day, first_value)
    if statement is None:
        return _increment_with_row_lock(connection, day, first_value)
    return connection.execute(statement).scalar_one()


def allocate_ticket_number(
    connection: Connection, created_at: datetime, prefix: Optional[str] = None
) -> str:
    """Return a fresh ticket number for a ticket created at ``created_at`` (UTC)."""

    day = created_at.date()
    sequence = next_sequence(connection, day, prefix)
    number = format_ticket_number(day, sequence, prefix)
    LOGGER.debug("Allocated ticket number %s", number)
    return number


def reserve_supplied_number(
    connection: Connection, ticket_number: str, prefix: Optional[str] = None
) -> None:
    """Keep the day's counter ahead of a number chosen by the caller.

    A day without a counter row needs nothing: its first allocation is seeded
    from the numbers already stored.
    """

    from .models.ticket import TicketDailySequence

    parsed = parse_ticket_number(ticket_number, prefix)
    if parsed is None:
        return
    day, sequence = parsed
    sequences = TicketDailySequence.__table__
    connection.execute(
        sequences.update()
        .where(sequences.c.sequence_date == day, sequences.c.last_value < sequence)
        .values(last_value=sequence)
    )
