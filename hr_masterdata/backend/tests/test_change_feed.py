from datetime import date

import pytest

from app.models import Employee, ImportantDate
from app.services.change_feed import (
    DELETE,
    INSERT,
    UPDATE,
    ChangeEvent,
    ChangeFeed,
    change_feed,
)
from app.services.change_notifier import ChangeNotifier, format_batched_notification, ViewChange, ADDED, UPDATED
from app.services.column_service import ColumnService
from app.services.view_composer import ViewFilters


def make_employee(**overrides):
    values = dict(
        first_name="Anna",
        surname="Berg",
        ssn="850315-1234",
        rank="Deckhand",
        gender="Female",
        hire_date=date(2024, 3, 1),
        stena_date="Week 12",
        omc_date="Week 14",
        is_terminated=False,
        is_archived=False,
    )
    values.update(overrides)
    return Employee(**values)


def record(id, first="Anna", surname="Berg", **extra):
    data = {
        "id": id,
        "first_name": first,
        "surname": surname,
        "rank": "Deckhand",
        "is_archived": False,
        "is_terminated": False,
    }
    data.update(extra)
    return data


def test_subscription_is_released_on_exit():
    feed = ChangeFeed()
    with feed.subscribe("employees") as events:
        assert feed.subscriber_count("employees") == 1
        feed.publish(ChangeEvent("employees", INSERT, "1", new={"id": "1"}))
        feed.publish(ChangeEvent("important_dates", INSERT, "2", new={"id": "2"}))
        assert [e.record_id for e in events.drain()] == ["1"]
    assert feed.subscriber_count() == 0
    assert events.closed


def test_subscription_filter():
    feed = ChangeFeed()
    with feed.subscribe("employees", {"rank": "Captain"}) as events:
        feed.publish(ChangeEvent("employees", INSERT, "1", new={"rank": "Deckhand"}))
        feed.publish(ChangeEvent("employees", INSERT, "2", new={"rank": "Captain"}))
        assert events.poll(timeout=0).record_id == "2"
        assert events.poll(timeout=0) is None


def test_unknown_table_rejected():
    with pytest.raises(ValueError):
        with ChangeFeed().subscribe("salaries"):
            pass


def test_committed_changes_are_published(db):
    with change_feed.subscribe("employees") as events:
        employee = make_employee()
        db.add(employee)
        db.commit()
        assert employee.rank == "Deckhand"
        employee.rank = "Captain"
        db.commit()
        db.delete(employee)
        db.commit()
        batch = events.drain()

    assert [e.event_type for e in batch] == [INSERT, UPDATE, DELETE]
    assert batch[1].old["rank"] == "Deckhand"
    assert batch[1].new["rank"] == "Captain"


def test_rolled_back_changes_are_not_published(db):
    with change_feed.subscribe("employees") as events:
        db.add(make_employee())
        db.flush()
        db.rollback()
        assert events.drain() == []


def test_important_date_changes_reach_their_own_table(db):
    with change_feed.subscribe("important_dates") as events:
        db.add(ImportantDate(week_number=12, year=2026, category="Stena Dates",
                          date_description="Drill", date_value=date(2026, 3, 16)))
        db.commit()
        assert [e.table for e in events.drain()] == ["important_dates"]


@pytest.fixture
def columns(db):
    return ColumnService.all_columns(db)


def test_notifier_reports_added_and_updated(columns):
    notifier = ChangeNotifier(columns, "sodexo", employees=[record("1")])
    assert notifier.visible_ids == ["1"]

    batch = notifier.process([ChangeEvent("employees", INSERT, "2", new=record("2", "Bo", "Ek"))])
    assert batch.added == ["2"]
    assert batch.message == "1 new employee matches your filters: Bo Ek"

    batch = notifier.process([
        ChangeEvent("employees", UPDATE, "1", new=record("1", rank="Captain"), old=record("1")),
    ])
    assert batch.updated == ["1"]
    assert batch.message == "Employee Anna Berg was updated (Rank changed)"


def test_notifier_reports_rows_leaving_the_view(columns):
    notifier = ChangeNotifier(columns, "omc", employees=[record("1"), record("2", "Bo", "Ek")])
    batch = notifier.process([
        ChangeEvent("employees", UPDATE, "1", new=record("1", is_archived=True), old=record("1")),
        ChangeEvent("employees", DELETE, "2", old=record("2", "Bo", "Ek")),
    ])
    assert batch.removed == ["1", "2"]
    assert batch.message == "2 employees no longer match your filters"
    assert notifier.visible_ids == []


def test_notifier_ignores_rows_outside_the_view(columns):
    notifier = ChangeNotifier(columns, "sodexo", ViewFilters(global_filter="Anna"), employees=[record("1")])
    batch = notifier.process([ChangeEvent("employees", INSERT, "2", new=record("2", "Bo", "Ek"))])
    assert batch is None


def test_notifier_flags_important_date_changes(columns):
    notifier = ChangeNotifier(columns, "hr_admin")
    batch = notifier.process([ChangeEvent("important_dates", INSERT, "9", new={"id": "9"})])
    assert batch.important_dates_changed
    assert batch.message == "Important dates were updated"


def test_batched_message_precedence():
    changes = [ViewChange(UPDATED, "1", "A"), ViewChange(ADDED, "2", "B"), ViewChange(ADDED, "3", "C")]
    assert format_batched_notification(changes) == "2 new employees match your filters"
    assert format_batched_notification([ViewChange(UPDATED, "1", "A"), ViewChange(UPDATED, "2", "B")]) == (
        "2 employees were updated"
    )


def test_notifier_ignores_updates_to_filtered_out_rows(columns):
    hidden = record("2", "Bo", "Ek", is_terminated=True)
    notifier = ChangeNotifier(columns, "payroll", employees=[record("1"), hidden])
    assert notifier.visible_ids == ["1"]

    batch = notifier.process([
        ChangeEvent("employees", UPDATE, "2", new={**hidden, "rank": "Captain"}, old=hidden),
    ])
    assert batch is None
    assert notifier.visible_ids == ["1"]
