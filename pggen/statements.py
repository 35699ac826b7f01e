"""SQL statement builders and scanning helpers used by generated clients."""

from __future__ import annotations

import datetime
import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from pggen.field_set import FieldSet

_PG_TIME_RE = re.compile(
    r"^(\d{1,2}):(\d{2}):(\d{2})(?:\.(\d{1,9}))?(?:([+-])(\d{2}))?$"
)


@dataclass(frozen=True)
class FieldNameAndIdx:
    """A column name paired with its field index in the generated record."""

    name: str
    idx: int


def _placeholder(n: int) -> str:
    return f"${n}"


def _insert_common(
    table: str,
    fields: Sequence[FieldNameAndIdx],
    nrecords: int,
    pkey_name: str,
    include_id: bool,
    default_field_set: FieldSet,
) -> str:
    def skipped(field: FieldNameAndIdx) -> bool:
        return (not include_id and field.name == pkey_name) or default_field_set.test(
            field.idx
        )

    parts = ["INSERT INTO ", table, " ("]
    last = len(fields) - 1
    for i, field in enumerate(fields):
        if skipped(field):
            continue
        parts.append(f'"{field.name}"')
        if i < last:
            parts.append(",")
    parts.append(") VALUES ")

    n_insert_fields = sum(1 for field in fields if not skipped(field))
    next_arg = 1
    for rec_no in range(nrecords):
        slots = [_placeholder(next_arg + k) for k in range(n_insert_fields)]
        next_arg += n_insert_fields
        parts.append("(")
        parts.append(", ".join(slots))
        parts.append("),\n" if rec_no < nrecords - 1 else ")\n")
    return "".join(parts)


def bulk_insert_stmt(
    table: str,
    fields: Sequence[FieldNameAndIdx],
    nrecords: int,
    pkey_name: str,
    include_id: bool,
    default_field_set: FieldSet,
) -> str:
    """Build an INSERT of ``nrecords`` rows that returns their primary keys.

    The primary key column is left out unless ``include_id`` is set, and
    columns whose index is in ``default_field_set`` are left to their
    database defaults.
    """
    body = _insert_common(
        table, fields, nrecords, pkey_name, include_id, default_field_set
    )
    return f'{body} RETURNING "{pkey_name}"'


def update_stmt(
    table: str,
    pg_pkey: str,
    fields: Sequence[FieldNameAndIdx],
    field_mask: FieldSet,
    pkey_name: str,
) -> str:
    """Build an UPDATE of the fields whose positions are in ``field_mask``.

    The last placeholder is the primary key value that selects the row.
    """
    lhs = [f.name for i, f in enumerate(fields) if field_mask.test(i)]
    if not lhs:
        raise ValueError("update field mask selects no fields")
    rhs = [_placeholder(n) for n in range(1, len(lhs) + 1)]
    key_arg = _placeholder(len(lhs) + 1)

    if len(lhs) > 1:
        columns = "(" + ",".join(f'"{name}"' for name in lhs) + ")"
        values = "(" + ", ".join(rhs) + ")"
    else:
        columns = f'"{lhs[0]}"'
        values = rhs[0]

    return (
        f"UPDATE {table} SET {columns} = {values}"
        f' WHERE "{pg_pkey}" = {key_arg}'
        f' RETURNING "{pkey_name}"'
    )


def column_position_table(
    gen_time_col_idx_tab: Mapping[str, int], columns: Iterable[str]
) -> list[int]:
    """Map each run-time result column to its generation-time field index.

    Columns unknown at generation time map to -1.
    """
    return [gen_time_col_idx_tab.get(name, -1) for name in columns]


def parse_pg_time(
    value: object,
) -> datetime.time | datetime.datetime | None:
    """Convert a scanned postgres time value.

    ``None`` stays ``None``; datetime and time values pass through; strings
    of the form ``HH:MM:SS`` with an optional ``-07`` style zone are parsed.
    """
    if value is None:
        return None
    if isinstance(value, (datetime.datetime, datetime.time)):
        return value
    if isinstance(value, str):
        return _parse_time_string(value)
    raise TypeError("scanning to NullTime: expected time.Time")


def _parse_time_string(text: str) -> datetime.time:
    match = _PG_TIME_RE.match(text)
    if match is None:
        raise ValueError(f"parsing pg time: cannot parse {text!r}")
    hour, minute, second, fraction, sign, zone_hours = match.groups()
    micros = int((fraction or "0")[:6].ljust(6, "0"))
    tzinfo = None
    if sign is not None:
        offset = datetime.timedelta(hours=int(zone_hours))
        tzinfo = datetime.timezone(-offset if sign == "-" else offset)
    try:
        return datetime.time(
            int(hour), int(minute), int(second), micros, tzinfo=tzinfo
        )
    except ValueError as err:
        raise ValueError(f"parsing pg time: {err}") from err