from datetime import date, datetime

from prayer_engine.schedule.composer import ScheduleRow
from prayer_engine.schedule.service import get_schedule, get_schedule_records, save_schedule


def _row(day, code="Erbil", iftar_minute=47):
    return ScheduleRow(
        day_order=day - 17,
        month="February",
        iftar=datetime(2026, 2, day, 17, iftar_minute),
        imsak=datetime(2026, 2, day, 5, 11),
        date=date(2026, 2, day),
        source="computed",
        city_code=code,
    )


def test_save_and_load(session_factory):
    rows = [_row(18), _row(19), _row(18, code="Duhok")]
    assert save_schedule(rows, session_factory) == 3
    assert get_schedule("Erbil", session_factory) == rows[:2]
    assert get_schedule("Duhok", session_factory) == rows[2:]
    assert get_schedule("Zakho", session_factory) == []


def test_save_replaces_rows_on_the_same_dates(session_factory):
    save_schedule([_row(18), _row(19)], session_factory)
    save_schedule([_row(19, iftar_minute=48), _row(20)], session_factory)

    stored = get_schedule("Erbil", session_factory)
    assert [r.date.day for r in stored] == [18, 19, 20]
    assert stored[1].iftar == datetime(2026, 2, 19, 17, 48)


def test_records_have_create_time(session_factory):
    save_schedule([_row(18)], session_factory)
    record = get_schedule_records("Erbil", session_factory)[0]
    assert record.create_time is not None
    assert record.is_current == 0
