from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from backend.app import models, numbering, schemas
from backend.app.numbering import (
    format_ticket_number,
    highest_sequence,
    next_sequence,
    parse_sequence,
    parse_ticket_number,
)
from backend.app.services import TicketService, UniqueConstraintViolation


def test_format_ticket_number_zero_pads_and_widens():
    day = date(2024, 1, 15)

    assert format_ticket_number(day, 1) == "SD-20240115-0001"
    assert format_ticket_number(day, 42) == "SD-20240115-0042"
    assert format_ticket_number(day, 12345) == "SD-20240115-12345"
    assert format_ticket_number(day, 7, prefix="HD") == "HD-20240115-0007"


def test_parse_sequence_rejects_other_days_and_malformed_suffixes():
    day = date(2024, 1, 15)

    assert parse_sequence("SD-20240115-0009", day) == 9
    assert parse_sequence("SD-20240116-0009", day) is None
    assert parse_sequence("SD-20240115-00A9", day) is None
    assert parse_sequence("SD-20240115-", day) is None


def test_highest_sequence_defaults_to_zero():
    day = date(2024, 1, 15)

    assert highest_sequence([], day) == 0
    assert (
        highest_sequence(
            ["SD-20240115-0003", "SD-20240115-0011", "SD-20240114-0099", "legacy"],
            day,
        )
        == 11
    )


def test_first_tickets_of_a_day_are_numbered_sequentially(make_ticket):
    created = datetime(2024, 1, 15, 8, 30, tzinfo=timezone.utc)

    first = make_ticket(created_at=created)
    second = make_ticket(created_at=created)

    assert first.ticket_number == "SD-20240115-0001"
    assert second.ticket_number == "SD-20240115-0002"


def test_numbering_restarts_each_day(make_ticket):
    make_ticket(created_at=datetime(2024, 1, 15, 23, 59, tzinfo=timezone.utc))
    next_day = make_ticket(created_at=datetime(2024, 1, 16, 0, 1, tzinfo=timezone.utc))

    assert next_day.ticket_number == "SD-20240116-0001"


def test_number_uses_the_utc_creation_date(make_ticket):
    # 22:30 at UTC-05:00 is already the next day in UTC.
    local = timezone(timedelta(hours=-5))
    ticket = make_ticket(created_at=datetime(2024, 3, 1, 22, 30, tzinfo=local))

    assert ticket.ticket_number == "SD-20240302-0001"


def test_counter_is_seeded_from_existing_numbers(make_ticket):
    created = datetime(2024, 2, 1, 10, 0, tzinfo=timezone.utc)
    make_ticket(created_at=created, ticket_number="SD-20240201-0007")

    generated = make_ticket(created_at=created)

    assert generated.ticket_number == "SD-20240201-0008"


def test_counter_row_tracks_last_value(db_session, make_ticket):
    created = datetime(2024, 4, 2, 9, 0, tzinfo=timezone.utc)
    for _ in range(3):
        make_ticket(created_at=created)

    row = db_session.get(models.TicketDailySequence, date(2024, 4, 2))

    assert row is not None
    assert row.last_value == 3


def test_next_sequence_increments_atomically(db_session):
    connection = db_session.connection()
    day = date(2024, 5, 5)

    values = [next_sequence(connection, day) for _ in range(4)]

    assert values == [1, 2, 3, 4]


def test_supplied_ticket_number_is_kept(make_ticket):
    ticket = make_ticket(ticket_number="LEGACY-1")

    assert ticket.ticket_number == "LEGACY-1"


def test_ticket_number_cannot_be_changed(db_session, make_ticket):
    ticket = make_ticket(created_at=datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc))
    original = ticket.ticket_number

    ticket.ticket_number = "SD-20990101-9999"
    ticket.title = "Printer jammed again"
    db_session.commit()
    db_session.refresh(ticket)

    assert ticket.ticket_number == original
    assert ticket.title == "Printer jammed again"


def test_duplicate_supplied_number_is_a_conflict(client, reference):
    payload = {
        "title": "VPN down",
        "category_id": reference["categories"]["IT Support"].id,
        "priority_id": reference["priorities"]["High"].id,
        "requester_name": "Grace Hopper",
        "requester_email": "grace@example.com",
        "ticket_number": "SD-20240101-0001",
    }

    assert client.post("/tickets", json=payload).status_code == 201
    response = client.post("/tickets", json=payload)

    assert response.status_code == 409
    assert response.json()["detail"] == "Ticket number already exists."


def test_duplicate_number_raises_service_error(db_session, reference):
    payload = schemas.TicketCreate(
        title="VPN down",
        category_id=reference["categories"]["IT Support"].id,
        priority_id=reference["priorities"]["High"].id,
        requester_name="Grace Hopper",
        requester_email="grace@example.com",
        ticket_number="SD-20240101-0001",
    )
    TicketService.create_ticket(db_session, payload)

    with pytest.raises(UniqueConstraintViolation):
        TicketService.create_ticket(db_session, payload)

    assert db_session.query(models.Ticket).count() == 1


def test_parse_ticket_number_reads_day_and_sequence():
    assert parse_ticket_number("SD-20240115-0009") == (date(2024, 1, 15), 9)
    assert parse_ticket_number("SD-20241315-0009") is None
    assert parse_ticket_number("HD-20240115-0009") is None
    assert parse_ticket_number("HD-20240115-0009", prefix="HD") == (date(2024, 1, 15), 9)
    assert parse_ticket_number("LEGACY-1") is None


def test_supplied_number_advances_the_day_counter(client, reference, clock):
    payload = {
        "title": "VPN down",
        "category_id": reference["categories"]["IT Support"].id,
        "priority_id": reference["priorities"]["High"].id,
        "requester_name": "Grace Hopper",
        "requester_email": "grace@example.com",
    }

    first = client.post("/tickets", json=payload)
    supplied = client.post("/tickets", json={**payload, "ticket_number": "SD-20240115-0002"})
    following = client.post("/tickets", json=payload)

    assert first.json()["ticket_number"] == "SD-20240115-0001"
    assert supplied.status_code == 201
    assert following.status_code == 201
    assert following.json()["ticket_number"] == "SD-20240115-0003"


def test_supplied_number_never_lowers_the_counter(db_session, make_ticket):
    created = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
    for _ in range(3):
        make_ticket(created_at=created)

    make_ticket(ticket_number="SD-20240301-0002-A")
    make_ticket(ticket_number="SD-20240301-0009")
    later = make_ticket(created_at=created)

    assert later.ticket_number == "SD-20240301-0010"
    assert db_session.get(models.TicketDailySequence, date(2024, 3, 1)).last_value == 10


def test_prefix_is_read_from_environment(monkeypatch):
    monkeypatch.setenv(numbering.PREFIX_ENV, "HD")
    assert numbering._read_prefix() == "HD"

    monkeypatch.setenv(numbering.PREFIX_ENV, "BAD-PREFIX")
    assert numbering._read_prefix() == numbering.DEFAULT_PREFIX

    monkeypatch.delenv(numbering.PREFIX_ENV)
    assert numbering._read_prefix() == numbering.DEFAULT_PREFIX
