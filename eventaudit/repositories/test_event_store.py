"""Tests for EventStore."""

from datetime import datetime, timedelta, timezone

import pytest

from eventaudit.domain import Event, RevisionType
from eventaudit.exceptions import ConflictError, EventNotFoundError
from eventaudit.repositories import EventStore


def test_create_and_read(database, t0):
    with database.transaction() as session:
        event_id = EventStore(session).create(Event("Our first event!", t0))

    with database.transaction() as session:
        event = EventStore(session).read(event_id)

    assert event == Event(title="Our first event!", date=t0, id=event_id)


def test_create_ignores_given_id(database, t0):
    with database.transaction() as session:
        event_id = EventStore(session).create(Event("Launch", t0, id=42))

    assert event_id == 1


def test_find_all_ordered_by_id(database, t0):
    with database.transaction() as session:
        store = EventStore(session)
        store.create(Event("first", t0))
        store.create(Event("second", t0))

    with database.transaction() as session:
        events = EventStore(session).find_all()
        count = EventStore(session).count()

    assert [e.title for e in events] == ["first", "second"]
    assert count == 2


def test_read_missing_raises(database):
    with database.transaction() as session:
        with pytest.raises(EventNotFoundError) as exc_info:
            EventStore(session).read(99)

    assert exc_info.value.event_id == 99
    assert isinstance(exc_info.value, LookupError)


def test_get_missing_returns_none(database):
    with database.transaction() as session:
        assert EventStore(session).get(99) is None


def test_update_by_id(database, t0):
    with database.transaction() as session:
        event_id = EventStore(session).create(Event("Launch", t0))

    later = datetime(2026, 11, 1, 10, 0)
    with database.transaction() as session:
        EventStore(session).update(event_id, {'title': "update by id 123", 'date': later})

    with database.transaction() as session:
        event = EventStore(session).read(event_id)

    assert event.title == "update by id 123"
    assert event.date == later


def test_update_missing_raises(database):
    with pytest.raises(EventNotFoundError):
        with database.transaction() as session:
            EventStore(session).update(5, {'title': "nope"})


@pytest.mark.parametrize("patch", [
    {'location': "Berlin"},
    {'title': None},
    {'date': "2026-01-01"},
])
def test_update_rejects_bad_patch(database, t0, patch):
    with database.transaction() as session:
        event_id = EventStore(session).create(Event("Launch", t0))

    with pytest.raises(ValueError):
        with database.transaction() as session:
            EventStore(session).update(event_id, patch)


def test_update_without_changes_records_no_revision(database, t0):
    with database.transaction() as session:
        event_id = EventStore(session).create(Event("Launch", t0))

    with database.transaction() as session:
        store = EventStore(session)
        store.update(event_id, {'title': "Launch"})
        history = store.revision_log.history(event_id)

    assert [r.revision_type for r in history] == [RevisionType.ADD]


def test_aware_dates_are_stored_as_utc(database):
    aware = datetime(2026, 10, 19, 9, 30, tzinfo=timezone(timedelta(hours=2)))

    with database.transaction() as session:
        event_id = EventStore(session).create(Event("Launch", aware))

    with database.transaction() as session:
        store = EventStore(session)
        store.update(event_id, {'date': aware})
        event = store.read(event_id)
        history = store.revision_log.history(event_id)

    assert event.date == datetime(2026, 10, 19, 7, 30)
    assert [r.revision_type for r in history] == [RevisionType.ADD]
    assert history[0].date == datetime(2026, 10, 19, 7, 30)


def test_delete_by_id(database, t0):
    with database.transaction() as session:
        event_id = EventStore(session).create(Event("Launch", t0))

    with database.transaction() as session:
        store = EventStore(session)
        store.delete(event_id)
        assert store.get(event_id) is None

    with database.transaction() as session:
        assert EventStore(session).get(event_id) is None


def test_delete_missing_raises(database):
    with pytest.raises(EventNotFoundError):
        with database.transaction() as session:
            EventStore(session).delete(1)


def test_failed_transaction_rolls_back_event_and_revision(database, t0):
    with pytest.raises(RuntimeError):
        with database.transaction() as session:
            EventStore(session).create(Event("Launch", t0))
            raise RuntimeError("boom")

    with database.transaction() as session:
        store = EventStore(session)
        assert store.find_all() == []
        assert store.revision_log.history(1) == []
        assert store.revision_log.current_revision_number() is None


def test_failed_update_keeps_prior_state(database, t0):
    with database.transaction() as session:
        event_id = EventStore(session).create(Event("Launch", t0))

    with pytest.raises(RuntimeError):
        with database.transaction() as session:
            EventStore(session).update(event_id, {'title': "Changed"})
            raise RuntimeError("boom")

    with database.transaction() as session:
        store = EventStore(session)
        assert store.read(event_id).title == "Launch"
        assert len(store.revision_log.history(event_id)) == 1


def test_restore_deleted_event_keeps_id(database, t0):
    with database.transaction() as session:
        event_id = EventStore(session).create(Event("Launch", t0))
    with database.transaction() as session:
        EventStore(session).delete(event_id)

    with database.transaction() as session:
        store = EventStore(session)
        restored_id = store.restore(Event("Launch", t0, id=event_id))
        history = store.revision_log.history(event_id)

    assert restored_id == event_id
    assert [r.revision_type for r in history] == [RevisionType.ADD, RevisionType.DEL, RevisionType.ADD]


def test_restore_live_event_conflicts(database, t0):
    with database.transaction() as session:
        event_id = EventStore(session).create(Event("Launch", t0))

    with pytest.raises(ConflictError):
        with database.transaction() as session:
            EventStore(session).restore(Event("Launch", t0, id=event_id))


def test_restore_requires_id(database, t0):
    with database.transaction() as session:
        with pytest.raises(ValueError):
            EventStore(session).restore(Event("Launch", t0))
