"""Schedule assembly across the relational store and Redis."""

import pytest

from models import Room, Slot
from services.ideas import IdeaService
from services.schedule import build_schedule


@pytest.fixture
def ideas(store):
    return IdeaService(store)


@pytest.fixture
def venue(db):
    room = Room(name="R")
    db.add(room)
    db.flush()
    open_slot = Slot(start_time="09:00", duration_minutes=30)
    booked_slot = Slot(start_time="10:00", duration_minutes=45, room_id=room.id)
    db.add_all([open_slot, booked_slot])
    db.commit()
    return room, open_slot, booked_slot


def test_open_and_booked_slots(db, store, ideas, venue):
    room, open_slot, booked_slot = venue
    idea = ideas.submit("Testing", "How we test")
    ideas.assign(idea.id, booked_slot.id, room.id)

    schedule = build_schedule(db, store)

    assert [s.id for s in schedule] == [open_slot.id, booked_slot.id]
    assert schedule[0].sessions == []
    assert len(schedule[1].sessions) == 1
    session = schedule[1].sessions[0]
    assert session.id == idea.id
    assert session.room_name == "R"
    assert schedule[1].room_name == "R"


def test_idea_on_deleted_slot_is_dropped(db, store, ideas, venue):
    room, _, booked_slot = venue
    idea = ideas.submit("Orphan", "d")
    ideas.assign(idea.id, "slot_deleted", room.id)

    schedule = build_schedule(db, store)

    assert all(s.sessions == [] for s in schedule)


def test_only_active_assigned_ideas_are_scheduled(db, store, ideas, venue):
    room, _, booked_slot = venue
    a = ideas.submit("A", "d")
    b = ideas.submit("B", "d")
    ideas.submit("Unassigned", "d")
    ideas.assign(a.id, booked_slot.id, room.id)
    merged = ideas.merge([a.id, b.id], "AB", "combined")

    schedule = build_schedule(db, store)

    assert schedule[1].sessions == []

    ideas.assign(merged.id, booked_slot.id, room.id)
    schedule = build_schedule(db, store)
    assert [s.id for s in schedule[1].sessions] == [merged.id]


def test_session_in_unknown_room_has_no_room_name(db, store, ideas, venue):
    _, open_slot, _ = venue
    idea = ideas.submit("A", "d")
    ideas.assign(idea.id, open_slot.id, "room_gone")

    schedule = build_schedule(db, store)

    assert schedule[0].sessions[0].room_name is None


def test_schedule_endpoint_is_public(client, store, session_factory):
    with session_factory() as session:
        session.add(Slot(start_time="09:00", duration_minutes=30))
        session.commit()

    res = client.get("/api/schedule")

    assert res.status_code == 200
    assert res.json()[0]["sessions"] == []
    assert res.json()[0]["duration_minutes"] == 30
