from typing import List

from pydantic import TypeAdapter

from pgdash.ai_feature.schemas import PatternRule


# -----------------------------------------------------------------------------
# PATTERN TABLE
# Ordered natural-language rules. Requests are lower-cased before matching,
# so every expression is written in lower case. Earlier rules win ties.
# -----------------------------------------------------------------------------

QUERY_PATTERNS = [
    # Basic SELECT patterns
    {
        "key": "show_users",
        # Not followed by "with"/"by", so the search rules below are not shadowed
        "pattern": r"(?:show|list|get|find|display)\s+(?:me\s+)?(?:all\s+)?(?:the\s+)?users?\b(?!\s+(?:with|by)\b)",
        "template": "SELECT * FROM users",
        "confidence": 0.9,
    },
    {
        "key": "count_users",
        "pattern": r"(?:how many|count)\s+users?",
        "template": "SELECT COUNT(*) as user_count FROM users",
        "confidence": 0.95,
    },
    {
        "key": "recent_users",
        "pattern": r"(?:recent|new|latest)\s+users?",
        "template": "SELECT * FROM users ORDER BY created_at DESC LIMIT 10",
        "confidence": 0.85,
    },
    {
        "key": "active_users",
        "pattern": r"active\s+users?",
        "template": "SELECT * FROM users WHERE last_login_at > NOW() - INTERVAL '30 days'",
        "confidence": 0.8,
    },
    # Time-based queries
    {
        "key": "users_this_month",
        "pattern": r"users?\s+(?:registered|created|joined)\s+(?:this\s+)?month",
        "template": "SELECT * FROM users WHERE created_at >= DATE_TRUNC('month', CURRENT_DATE)",
        "confidence": 0.9,
    },
    {
        "key": "users_today",
        "pattern": r"users?\s+(?:registered|created|joined)\s+today",
        "template": "SELECT * FROM users WHERE DATE(created_at) = CURRENT_DATE",
        "confidence": 0.95,
    },
    # Search patterns
    {
        "key": "search_by_email",
        "pattern": r"(?:find|search|get)\s+users?\s+(?:with|by)\s+email\s+(.+)",
        "template": "SELECT * FROM users WHERE email ILIKE '%{param}%'",
        "confidence": 0.85,
    },
    {
        "key": "search_by_username",
        "pattern": r"(?:find|search|get)\s+users?\s+(?:with|by)\s+(?:username|name)\s+(.+)",
        "template": "SELECT * FROM users WHERE username ILIKE '%{param}%'",
        "confidence": 0.85,
    },
    # Analytical queries
    {
        "key": "user_statistics",
        "pattern": r"users?\s+(?:statistics|stats|analytics)",
        "template": (
            "SELECT\n"
            "  COUNT(*) as total_users,\n"
            "  COUNT(CASE WHEN created_at >= CURRENT_DATE - INTERVAL '30 days' THEN 1 END) as new_users_30d,\n"
            "  COUNT(CASE WHEN last_login_at >= CURRENT_DATE - INTERVAL '7 days' THEN 1 END) as active_users_7d\n"
            "FROM users"
        ),
        "confidence": 0.8,
    },
    # Table analysis
    {
        "key": "table_info",
        "pattern": r"(?:describe|info|structure|columns)\s+(?:table\s+)?(\w+)",
        "template": (
            "SELECT column_name, data_type, is_nullable "
            "FROM information_schema.columns WHERE table_name = '{param}'"
        ),
        "confidence": 0.9,
    },
    # Performance queries
    {
        "key": "slow_queries",
        "pattern": r"(?:slow|slowest)\s+(?:queries|query)",
        "template": "SELECT query, mean_exec_time, calls FROM pg_stat_statements ORDER BY mean_exec_time DESC LIMIT 10",
        "confidence": 0.85,
    },
]


def load_rules(records) -> List[PatternRule]:
    """Validate raw rule records into an immutable, ordered rule list."""
    return TypeAdapter(List[PatternRule]).validate_python(records)


DEFAULT_RULES = tuple(load_rules(QUERY_PATTERNS))

# Known tables the keyword fallback can guess from, in priority order
KNOWN_TABLES = ("users", "orders", "products", "customers")
