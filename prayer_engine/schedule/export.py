"""
Schedule export: SQL INSERT script for the ramadan_schedule table and plain
dict records for bulk insertion. Timestamp text is fixed by the consuming
table: "YYYY-MM-DD HH:MM:SS" and date-only "YYYY-MM-DD 00:00:00".
"""
from datetime import date, datetime, timezone as dt_timezone
from typing import Any, Dict, Iterable, List, Optional

from prayer_engine.prayer.methods import CalculationAttribute

from .composer import IMSAK_OFFSET_MINUTES, ScheduleDiagnostics, ScheduleRow

TABLE_NAME = "ramadan_schedule"
COLUMNS = ("day_order", "month", "iftar", "imsak", "date", "is_current", "city_code", "create_time")

DATETIME_FORMAT = "%Y-%m-%d %H:%M:00"
DATE_FORMAT = "%Y-%m-%d 00:00:00"


def format_datetime(value: datetime) -> str:
    return value.strftime(DATETIME_FORMAT)


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def format_header_date(value: date) -> str:
    """Short month and unpadded day: Feb 18, 2026 or Mar 1, 2026"""
    return f"{value:%b} {value.day}, {value.year}"


def format_generated_at(value: datetime) -> str:
    """UTC with milliseconds and a Z suffix, e.g. 2026-02-01T00:00:00.000Z"""
    value = value.astimezone(dt_timezone.utc)
    return f"{value:%Y-%m-%dT%H:%M:%S}.{value.microsecond // 1000:03d}Z"


def _quote(text: str) -> str:
    return "'" + str(text).replace("'", "''") + "'"


def _format_utc_offset(hours: Optional[float]) -> str:
    if hours is None:
        return "system local"
    sign = "+" if hours >= 0 else "-"
    hours = abs(hours)
    whole = int(hours)
    minutes = int(round((hours - whole) * 60))
    return f"UTC{sign}{whole}" if not minutes else f"UTC{sign}{whole}:{minutes:02d}"


def row_to_record(row: ScheduleRow) -> Dict[str, Any]:
    """One row as a dict of column -> text/int value (create_time left to the database)."""
    return {
        "day_order": row.day_order,
        "month": row.month,
        "iftar": format_datetime(row.iftar),
        "imsak": format_datetime(row.imsak),
        "date": format_date(row.date),
        "is_current": row.is_current,
        "city_code": row.city_code,
    }


def row_to_values(row: ScheduleRow) -> str:
    record = row_to_record(row)
    return (
        f"({record['day_order']}, {_quote(record['month'])}, {_quote(record['iftar'])}, "
        f"{_quote(record['imsak'])}, {_quote(record['date'])}, {record['is_current']}, "
        f"{_quote(record['city_code'])}, NOW())"
    )


def render_sql(
    rows: Iterable[ScheduleRow],
    diagnostics: ScheduleDiagnostics,
    start: date,
    end: date,
    timezone: Optional[float] = None,
    attribute: Optional[CalculationAttribute] = None,
    generated_at: Optional[datetime] = None,
) -> str:
    """SQL script: header comments, then one INSERT block per processed location."""
    generated_at = generated_at or datetime.now(dt_timezone.utc)
    rows_by_code: Dict[str, List[ScheduleRow]] = {}
    for row in rows:
        rows_by_code.setdefault(row.city_code, []).append(row)

    lines = [
        f"-- Ramadan Schedule: {format_header_date(start)} – {format_header_date(end)}",
        f"-- Generated on {format_generated_at(generated_at)}",
        "-- Stored fixed prayer times where the location has them, calculated otherwise",
    ]
    if attribute is not None:
        lines.append(
            f"-- Calculation: {attribute.method.value} / {attribute.asr_method.name.lower()} / "
            f"{attribute.high_latitude.value}"
        )
    lines.append(f"-- Timezone: {_format_utc_offset(timezone)}")
    lines.append(f"-- Imsak: Fajr - {IMSAK_OFFSET_MINUTES} minutes")
    sql = "\n".join(lines) + "\n\n"

    for summary in diagnostics.locations:
        location = summary.location
        sql += (
            f"-- {summary.code} [{summary.mode.upper()}] "
            f"({location.name}: {location.latitude}, {location.longitude})\n"
        )
        code_rows = rows_by_code.get(summary.code) or []
        if code_rows:
            columns = ", ".join(COLUMNS)
            sql += f"INSERT INTO {TABLE_NAME} ({columns}) VALUES\n"
            sql += ",\n".join(row_to_values(r) for r in code_rows) + ";\n"
        sql += "\n"
    return sql


def write_sql(path: str, sql: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(sql)
