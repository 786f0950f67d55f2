# tests/test_extractor.py

from __future__ import annotations

from taskpulse.reminders.extractor import extract, parse_reminder_time

from .fakes import NOW, iso, make_task


def test_parse_reminder_time_accepts_rfc3339_with_offset() -> None:
    assert parse_reminder_time("2023-11-14T22:13:20Z") == NOW
    assert parse_reminder_time("2023-11-14T22:13:20.000Z") == NOW
    assert parse_reminder_time("2023-11-15T06:13:20+08:00") == NOW


def test_parse_reminder_time_rejects_unusable_values() -> None:
    assert parse_reminder_time(None) is None
    assert parse_reminder_time(NOW) is None
    assert parse_reminder_time("") is None
    assert parse_reminder_time("tomorrow morning") is None
    # No offset -> not an absolute instant.
    assert parse_reminder_time("2023-11-14T22:13:20") is None


def test_extract_builds_occurrences_with_task_identity() -> None:
    task = make_task(
        "t1",
        title="Pay rent",
        reminders=[
            {"id": "r1", "date": iso(NOW - 5), "repeat": "none", "enabled": True},
            {"id": "r2", "date": iso(NOW + 3600), "repeat": "weekly"},
        ],
    )

    occs = sorted(extract(task), key=lambda o: o.reminder_time)

    assert [o.key for o in occs] == [("t1", NOW - 5), ("t1", NOW + 3600)]
    assert [o.repeat for o in occs] == ["none", "weekly"]
    assert all(o.task_title == "Pay rent" for o in occs)


def test_extract_skips_malformed_entries_but_keeps_good_ones() -> None:
    task = make_task(
        "t1",
        reminders=[
            "not-an-object",
            42,
            {"repeat": "daily"},
            {"date": 1700000000},
            {"date": "garbage"},
            {"date": "2023-11-14T22:13:20"},
            {"date": iso(NOW - 60), "enabled": False},
            {"date": iso(NOW - 10)},
        ],
    )

    occs = extract(task)

    assert len(occs) == 1
    assert occs[0].reminder_time == NOW - 10
    assert occs[0].repeat == "none"


def test_extract_tolerates_broken_containers() -> None:
    assert extract(make_task("a", reminders="{not json")) == []
    assert extract(make_task("b", reminders='{"date": "2023-11-14T22:13:20Z"}')) == []
    assert extract(make_task("c", reminders="")) == []
    assert extract(make_task("d", reminders="null")) == []


def test_extract_collapses_same_instant_within_a_task() -> None:
    task = make_task(
        "t1",
        reminders=[
            {"id": "a", "date": "2023-11-14T22:13:20Z"},
            {"id": "b", "date": "2023-11-15T06:13:20+08:00", "repeat": "daily"},
        ],
    )

    occs = extract(task)

    assert len(occs) == 1
    assert occs[0].key == ("t1", NOW)
