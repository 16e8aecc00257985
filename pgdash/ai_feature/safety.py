from pgdash.ai_feature.schemas import SafetyVerdict


# -----------------------------------------------------------------------------
# SAFETY MODULE
# Purpose: flag SQL that should not run unattended.
# A plain substring scan, not a parser. The execute-query endpoint refuses
# SQL whose verdict is unsafe.
# -----------------------------------------------------------------------------

DESTRUCTIVE_WARNING = (
    "Query contains potentially destructive operations without WHERE clause"
)
COMMENT_WARNING = "Query contains SQL comments which might indicate injection attempts"
INJECTION_WARNING = "Potential SQL injection pattern detected"


def check_safety(sql: str) -> SafetyVerdict:
    """
    Scan SQL for dangerous substrings.

    Every check that triggers adds its warning; the query is safe only
    when no warning was raised.

    Example:
        check_safety("DELETE FROM users").safe  # False
    """
    warnings = []
    upper_sql = sql.upper()

    if "DROP TABLE" in upper_sql or (
        "DELETE FROM" in upper_sql and "WHERE" not in upper_sql
    ):
        warnings.append(DESTRUCTIVE_WARNING)

    if "--" in upper_sql or "/*" in upper_sql:
        warnings.append(COMMENT_WARNING)

    if "'" in sql and "||" in sql:
        warnings.append(INJECTION_WARNING)

    return SafetyVerdict(safe=not warnings, warnings=warnings)
