import datetime
import re

import pytest

from pggen.field_set import FieldSet
from pggen.statements import (
    FieldNameAndIdx,
    bulk_insert_stmt,
    column_position_table,
    parse_pg_time,
    update_stmt,
)

FIELDS = [FieldNameAndIdx("id", 0), FieldNameAndIdx("email", 1)]
THREE_FIELDS = [
    FieldNameAndIdx("id", 0),
    FieldNameAndIdx("email", 1),
    FieldNameAndIdx("nickname", 2),
]


def placeholders(sql):
    return [int(n) for n in re.findall(r"\$(\d+)", sql)]


def test_bulk_insert_with_id_pinned():
    sql = bulk_insert_stmt("users", FIELDS, 2, "id", True, FieldSet())
    assert sql == (
        'INSERT INTO users ("id","email") VALUES ($1, $2),\n($3, $4)\n RETURNING "id"'
    )


def test_bulk_insert_without_id_drops_pkey_column():
    sql = bulk_insert_stmt("users", THREE_FIELDS, 3, "id", False, FieldSet())
    column_list = sql.split(" VALUES ")[0]
    assert '"id"' not in column_list
    assert '"email"' in column_list and '"nickname"' in column_list
    assert placeholders(sql) == list(range(1, 7))
    assert sql.endswith(' RETURNING "id"')


def test_bulk_insert_skips_default_fields():
    defaults = FieldSet().set(2, True)
    sql = bulk_insert_stmt("users", THREE_FIELDS, 1, "id", True, defaults)
    assert '"nickname"' not in sql
    assert placeholders(sql) == [1, 2]


def test_bulk_insert_record_count_matches_rows():
    for nrecords in (1, 2, 5):
        sql = bulk_insert_stmt("users", FIELDS, nrecords, "id", True, FieldSet())
        values = sql.split(" VALUES ", 1)[1]
        assert values.count("(") == nrecords
        assert placeholders(sql) == list(range(1, 2 * nrecords + 1))


def test_bulk_insert_starts_with_table():
    sql = bulk_insert_stmt('"public"."users"', FIELDS, 1, "id", True, FieldSet())
    assert sql.startswith('INSERT INTO "public"."users" (')


def test_update_single_field_pinned():
    mask = FieldSet().set(1, True)
    sql = update_stmt("users", "id", FIELDS, mask, "id")
    assert sql == 'UPDATE users SET "email" = $1 WHERE "id" = $2 RETURNING "id"'


def test_update_multiple_fields_pinned():
    mask = FieldSet.filled(2)
    sql = update_stmt("users", "id", FIELDS, mask, "id")
    assert sql == (
        'UPDATE users SET ("id","email") = ($1, $2) WHERE "id" = $3 RETURNING "id"'
    )


def test_update_uses_positions_in_mask():
    mask = FieldSet().set(0, True).set(2, True)
    sql = update_stmt("users", "id", THREE_FIELDS, mask, "id")
    assert '"email"' not in sql
    assert '"nickname"' in sql
    assert placeholders(sql) == [1, 2, 3]


def test_update_with_empty_mask_raises():
    with pytest.raises(ValueError):
        update_stmt("users", "id", FIELDS, FieldSet(), "id")


def test_column_position_table_same_order():
    tab = {"id": 0, "email": 1, "nickname": 2}
    assert column_position_table(tab, ["id", "email", "nickname"]) == [0, 1, 2]


def test_column_position_table_reordered_and_new():
    tab = {"id": 0, "email": 1, "nickname": 2}
    result = column_position_table(tab, ["nickname", "added", "id", "email"])
    assert result == [2, -1, 0, 1]


def test_column_position_table_empty():
    assert column_position_table({"id": 0}, []) == []


def test_parse_pg_time_none():
    assert parse_pg_time(None) is None


def test_parse_pg_time_without_zone():
    assert parse_pg_time("04:05:06") == datetime.time(4, 5, 6)


def test_parse_pg_time_with_zone():
    parsed = parse_pg_time("04:05:06-07")
    assert (parsed.hour, parsed.minute, parsed.second) == (4, 5, 6)
    assert parsed.utcoffset() == datetime.timedelta(hours=-7)


def test_parse_pg_time_passes_datetimes_through():
    stamp = datetime.datetime(1999, 1, 8, 4, 5, 6, tzinfo=datetime.timezone.utc)
    assert parse_pg_time(stamp) is stamp


@pytest.mark.parametrize("text", ["not a time", "25:00:00", "04:05"])
def test_parse_pg_time_bad_string(text):
    with pytest.raises(ValueError):
        parse_pg_time(text)


def test_parse_pg_time_wrong_type():
    with pytest.raises(TypeError):
        parse_pg_time(12)