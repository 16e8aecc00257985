import pytest

from conftest import FakeResult, FakeSession
from pgdash.core.admin.execute import execute_sql, is_select, leading_command
from pgdash.core.admin.metrics import cache_hit_ratio
from pgdash.core.admin.roles import (
    build_alter_role,
    build_comment_on_role,
    build_create_role,
    create_role,
)
from pgdash.core.sql import format_bytes, quote_identifier, render_literal


def test_quote_identifier_doubles_quotes():
    assert quote_identifier('bo"b') == '"bo""b"'
    assert quote_identifier("bob") == '"bob"'


def test_render_literal_doubles_quotes():
    assert render_literal("it's") == "'it''s'"


def test_render_literal_keeps_backslash_colon():
    assert render_literal("p\\:w") == "'p\\:w'"
    assert render_literal("50%") == "'50%'"


@pytest.mark.asyncio
async def test_caller_sql_reaches_driver_unchanged():
    db = FakeSession()
    db.queue(FakeResult(rows=[{"a": "a\\:b"}]))
    sql = "SELECT 'a\\:b' AS a, ' :name', now()::date"

    result = await execute_sql(db, sql)

    assert db.statements == [sql]
    assert db.params == [None]
    assert result["rows"] == [{"a": "a\\:b"}]


@pytest.mark.asyncio
async def test_create_role_keeps_password_verbatim():
    db = FakeSession()

    await create_role(db, "bob", "p\\:w")

    assert db.statements == ["CREATE USER \"bob\" WITH PASSWORD 'p\\:w'"]
    assert db.commits == 1


@pytest.mark.parametrize(
    "size, expected",
    [(0, "0 Bytes"), (500, "500 Bytes"), (1024, "1 KB"), (1536, "1.5 KB"), (1048576, "1 MB")],
)
def test_format_bytes(size, expected):
    assert format_bytes(size) == expected


def test_cache_hit_ratio():
    assert cache_hit_ratio(99, 1) == 99.0
    assert cache_hit_ratio(0, 10) == 0.0


def test_build_create_role():
    assert (
        build_create_role("bob", "pw", can_create_db=True, can_replicate=True)
        == "CREATE USER \"bob\" WITH PASSWORD 'pw' CREATEDB REPLICATION"
    )


def test_build_create_role_quotes_input():
    statement = build_create_role('x" SUPERUSER --', "a'b")
    assert statement == "CREATE USER \"x\"\" SUPERUSER --\" WITH PASSWORD 'a''b'"


def test_build_alter_role_skips_unset_flags():
    statements = build_alter_role(
        "bob", {"can_create_db": None, "is_superuser": False}, new_password="x"
    )
    assert statements == [
        'ALTER USER "bob" NOSUPERUSER',
        "ALTER USER \"bob\" WITH PASSWORD 'x'",
    ]


def test_leading_command_and_select_detection():
    assert leading_command("  update users set a = 1") == "UPDATE"
    assert leading_command("") == ""
    assert is_select("  SELECT 1")
    assert not is_select("DELETE FROM users")


def test_build_comment_on_role():
    assert (
        build_comment_on_role("bob", "Bob's account")
        == "COMMENT ON ROLE \"bob\" IS 'Bob''s account'"
    )
