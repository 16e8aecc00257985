import pytest

from pgdash.ai_feature.safety import (
    COMMENT_WARNING,
    DESTRUCTIVE_WARNING,
    INJECTION_WARNING,
    check_safety,
)


def test_delete_without_where_is_unsafe():
    verdict = check_safety("DELETE FROM users")
    assert verdict.safe is False
    assert verdict.warnings == [DESTRUCTIVE_WARNING]


def test_delete_with_where_is_safe():
    verdict = check_safety("DELETE FROM users WHERE id=1")
    assert verdict.safe is True
    assert verdict.warnings == []


def test_drop_table_is_unsafe_even_with_where():
    verdict = check_safety("drop table users where x")
    assert verdict.warnings == [DESTRUCTIVE_WARNING]


def test_line_comment_is_flagged():
    verdict = check_safety("SELECT * FROM users -- comment")
    assert verdict.safe is False
    assert verdict.warnings == [COMMENT_WARNING]


def test_block_comment_is_flagged():
    assert check_safety("SELECT 1 /* hi */").warnings == [COMMENT_WARNING]


def test_quote_and_concatenation_is_flagged():
    verdict = check_safety("SELECT * FROM users WHERE name = 'a' || name")
    assert verdict.warnings == [INJECTION_WARNING]


def test_concatenation_without_quote_is_allowed():
    assert check_safety("SELECT first_name || last_name FROM users").safe is True


def test_all_triggered_warnings_are_reported_in_order():
    verdict = check_safety("delete from users; -- ' || '")
    assert verdict.warnings == [DESTRUCTIVE_WARNING, COMMENT_WARNING, INJECTION_WARNING]


@pytest.mark.parametrize(
    "sql",
    [
        "SELECT * FROM users",
        "SELECT * FROM users WHERE email ILIKE '%bob@example.com%'",
        "UPDATE users SET active = false WHERE id = 3",
    ],
)
def test_plain_queries_are_safe(sql):
    assert check_safety(sql).safe is True
