from __future__ import annotations

from datetime import datetime, timezone

import pytest

from backend.app import models, schemas
from backend.app.services import NotFoundError, TicketService, ValidationError

MISSING_ID = "00000000-0000-0000-0000-000000000000"


def _ticket_payload(reference: dict, **overrides) -> dict:
    payload = {
        "title": "Laptop will not boot",
        "description": "Black screen after the update",
        "category_id": reference["categories"]["IT Support"].id,
        "priority_id": reference["priorities"]["High"].id,
        "requester_name": "Grace Hopper",
        "requester_email": "grace@example.com",
    }
    payload.update(overrides)
    return payload


def test_create_ticket_starts_open_with_generated_number(client, clock, reference):
    response = client.post("/tickets", json=_ticket_payload(reference))

    assert response.status_code == 201
    body = response.json()
    assert body["ticket_number"] == "SD-20240115-0001"
    assert body["status"]["name"] == "Open"
    assert body["status"]["role"] == "open"
    assert body["category"]["name"] == "IT Support"
    assert body["priority"]["level"] == 3
    assert body["assigned_to"] == ""
    assert body["resolved_at"] is None
    assert body["closed_at"] is None
    assert body["created_at"] == body["updated_at"]


def test_create_ticket_trims_required_fields(db_session, reference):
    ticket = TicketService.create_ticket(
        db_session,
        schemas.TicketCreate(
            **_ticket_payload(reference, title="  Wi-Fi drops  ", requester_name=" Ada ")
        ),
    )

    assert ticket.title == "Wi-Fi drops"
    assert ticket.requester_name == "Ada"


@pytest.mark.parametrize(
    "overrides",
    [
        {"title": "   "},
        {"requester_name": ""},
        {"requester_email": " "},
        {"requester_email": "not-an-email"},
        {"category_id": MISSING_ID},
        {"priority_id": "not-a-uuid"},
    ],
)
def test_create_ticket_rejects_invalid_input(client, db_session, reference, overrides):
    response = client.post("/tickets", json=_ticket_payload(reference, **overrides))

    assert response.status_code == 400
    assert db_session.query(models.Ticket).count() == 0


def test_create_ticket_requires_an_initial_status(db_session, reference):
    for status in reference["statuses"].values():
        if status.role == models.StatusRole.OPEN:
            db_session.delete(status)
    db_session.commit()

    with pytest.raises(NotFoundError):
        TicketService.create_ticket(db_session, schemas.TicketCreate(**_ticket_payload(reference)))


def test_get_ticket_and_missing_ticket(client, make_ticket):
    ticket = make_ticket()

    found = client.get(f"/tickets/{ticket.id}")
    missing = client.get(f"/tickets/{MISSING_ID}")
    malformed = client.get("/tickets/not-a-uuid")

    assert found.status_code == 200
    assert found.json()["ticket_number"] == ticket.ticket_number
    assert missing.status_code == 404
    assert malformed.status_code == 404


def test_list_tickets_newest_first(client, make_ticket):
    make_ticket(title="Oldest", created_at=datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc))
    make_ticket(title="Newest", created_at=datetime(2024, 1, 3, 8, 0, tzinfo=timezone.utc))
    make_ticket(title="Middle", created_at=datetime(2024, 1, 2, 8, 0, tzinfo=timezone.utc))

    response = client.get("/tickets")

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert [item["title"] for item in body["items"]] == ["Newest", "Middle", "Oldest"]


def test_list_tickets_pagination(client, make_ticket):
    for day in range(1, 6):
        make_ticket(title=f"Ticket {day}", created_at=datetime(2024, 1, day, tzinfo=timezone.utc))

    response = client.get("/tickets", params={"skip": 1, "limit": 2})

    body = response.json()
    assert body["total"] == 5
    assert body["skip"] == 1
    assert body["limit"] == 2
    assert [item["title"] for item in body["items"]] == ["Ticket 4", "Ticket 3"]


def test_list_tickets_search_is_case_insensitive(client, make_ticket):
    make_ticket(title="Printer jammed", requester_name="Ada Lovelace")
    make_ticket(title="VPN access", description="Needs PRINTER drivers too")
    make_ticket(title="Payroll question", requester_name="Printer McPrintface")
    make_ticket(title="Desk chair broken", category="Facilities")

    response = client.get("/tickets", params={"search": "printer"})

    titles = {item["title"] for item in response.json()["items"]}
    assert titles == {"Printer jammed", "VPN access", "Payroll question"}


def test_list_tickets_search_matches_ticket_number(client, make_ticket):
    target = make_ticket(created_at=datetime(2024, 6, 1, tzinfo=timezone.utc))
    make_ticket(created_at=datetime(2024, 6, 2, tzinfo=timezone.utc))

    response = client.get("/tickets", params={"search": "20240601"})

    assert [item["id"] for item in response.json()["items"]] == [target.id]


def test_list_tickets_search_escapes_wildcards(client, make_ticket):
    make_ticket(title="Disk 100% full")
    make_ticket(title="Disk 100 GB free")
    make_ticket(title="snake_case folder")
    make_ticket(title="snakeXcase folder")

    percent = client.get("/tickets", params={"search": "100%"}).json()
    underscore = client.get("/tickets", params={"search": "snake_case"}).json()

    assert [item["title"] for item in percent["items"]] == ["Disk 100% full"]
    assert [item["title"] for item in underscore["items"]] == ["snake_case folder"]


def test_list_tickets_search_folds_accented_letters(client, make_ticket):
    make_ticket(title="Écran cassé")
    make_ticket(title="Keyboard missing keys")

    lower = client.get("/tickets", params={"search": "écran"}).json()
    upper = client.get("/tickets", params={"search": "ÉCRAN CASSÉ"}).json()

    assert [item["title"] for item in lower["items"]] == ["Écran cassé"]
    assert [item["title"] for item in upper["items"]] == ["Écran cassé"]


def test_list_tickets_filters_are_combined(client, make_ticket, reference):
    match = make_ticket(category="HR", priority="Critical")
    make_ticket(category="HR", priority="Low")
    make_ticket(category="Finance", priority="Critical")

    response = client.get(
        "/tickets",
        params={
            "category_id": reference["categories"]["HR"].id,
            "priority_id": reference["priorities"]["Critical"].id,
            "status_id": reference["statuses"]["Open"].id,
        },
    )

    body = response.json()
    assert body["total"] == 1
    assert body["items"][0]["id"] == match.id


def test_list_tickets_with_unknown_filter_returns_nothing(client, make_ticket):
    make_ticket()

    response = client.get("/tickets", params={"status_id": "bogus"})

    assert response.json() == {"items": [], "total": 0, "limit": 50, "skip": 0}


def test_update_status_endpoint(client, clock, make_ticket, reference):
    ticket = make_ticket()
    clock.set(2024, 1, 15, 11, 0)

    response = client.put(
        f"/tickets/{ticket.id}/status",
        json={"status_id": reference["statuses"]["Resolved"].id},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"]["name"] == "Resolved"
    assert body["resolved_at"] is not None
    assert body["closed_at"] is None


def test_update_status_endpoint_unknown_status(client, make_ticket):
    ticket = make_ticket()

    response = client.put(f"/tickets/{ticket.id}/status", json={"status_id": MISSING_ID})

    assert response.status_code == 404


def test_update_assignment_trims_and_touches_updated_at(client, clock, make_ticket):
    ticket = make_ticket()
    clock.set(2024, 1, 15, 10, 30)

    response = client.put(f"/tickets/{ticket.id}/assignment", json={"assigned_to": "  alice  "})

    body = response.json()
    assert response.status_code == 200
    assert body["assigned_to"] == "alice"
    assert body["updated_at"] > body["created_at"]


def test_reassigning_to_same_value_still_touches_updated_at(db_session, clock, make_ticket):
    ticket = make_ticket(assigned_to="alice")
    before = ticket.updated_at

    updated = TicketService.update_assignment(db_session, ticket.id, "alice")

    assert updated.updated_at > before


def test_update_assignment_unknown_ticket(client):
    response = client.put(f"/tickets/{MISSING_ID}/assignment", json={"assigned_to": "bob"})

    assert response.status_code == 404


def test_delete_ticket_removes_its_comments_only(client, db_session, make_ticket):
    doomed = make_ticket(title="Doomed")
    survivor = make_ticket(title="Survivor")
    doomed_id, survivor_id = doomed.id, survivor.id
    for ticket in (doomed, survivor):
        client.post(
            f"/tickets/{ticket.id}/comments",
            json={"author_name": "Support", "comment": f"Looking at {ticket.title}"},
        )

    response = client.delete(f"/tickets/{doomed_id}")

    assert response.status_code == 204
    assert client.get(f"/tickets/{doomed_id}").status_code == 404
    remaining = db_session.query(models.TicketComment).all()
    assert [comment.ticket_id for comment in remaining] == [survivor_id]


def test_delete_missing_ticket(client):
    assert client.delete(f"/tickets/{MISSING_ID}").status_code == 404


def test_comments_are_listed_chronologically(client, clock, make_ticket):
    ticket = make_ticket()
    for hour, text in ((10, "First"), (11, "Second"), (12, "Third")):
        clock.set(2024, 1, 15, hour, 0)
        response = client.post(
            f"/tickets/{ticket.id}/comments",
            json={"author_name": "Support", "comment": text},
        )
        assert response.status_code == 201

    response = client.get(f"/tickets/{ticket.id}/comments")

    assert [item["comment"] for item in response.json()["items"]] == ["First", "Second", "Third"]


def test_internal_comments_can_be_hidden(client, clock, make_ticket):
    ticket = make_ticket()
    clock.set(2024, 1, 15, 10, 0)
    client.post(
        f"/tickets/{ticket.id}/comments",
        json={"author_name": "Support", "comment": "We are on it"},
    )
    clock.set(2024, 1, 15, 10, 5)
    client.post(
        f"/tickets/{ticket.id}/comments",
        json={"author_name": "Support", "comment": "Vendor ticket #42", "is_internal": True},
    )

    everything = client.get(f"/tickets/{ticket.id}/comments").json()["items"]
    public = client.get(
        f"/tickets/{ticket.id}/comments", params={"include_internal": False}
    ).json()["items"]

    assert len(everything) == 2
    assert [item["comment"] for item in public] == ["We are on it"]


def test_adding_a_comment_does_not_touch_the_ticket(db_session, clock, make_ticket):
    ticket = make_ticket()
    before = ticket.updated_at
    clock.set(2024, 1, 15, 18, 0)

    TicketService.add_comment(
        db_session, ticket.id, schemas.CommentCreate(author_name="Support", comment="Noted")
    )
    db_session.refresh(ticket)

    assert ticket.updated_at == before


@pytest.mark.parametrize(
    "payload",
    [
        {"author_name": "Support", "comment": "   "},
        {"author_name": "  ", "comment": "Hello"},
    ],
)
def test_add_comment_requires_text_and_author(client, make_ticket, payload):
    ticket = make_ticket()

    response = client.post(f"/tickets/{ticket.id}/comments", json=payload)

    assert response.status_code == 400


def test_add_comment_to_missing_ticket(db_session):
    with pytest.raises(NotFoundError):
        TicketService.add_comment(
            db_session, MISSING_ID, schemas.CommentCreate(author_name="Support", comment="Hi")
        )


def test_add_comment_validation_runs_before_lookup(db_session):
    with pytest.raises(ValidationError):
        TicketService.add_comment(
            db_session, MISSING_ID, schemas.CommentCreate(author_name="Support", comment="")
        )


def test_list_comments_for_missing_ticket(client):
    assert client.get(f"/tickets/{MISSING_ID}/comments").status_code == 404


def test_health_check(client):
    assert client.get("/").json() == {"status": "ok"}
