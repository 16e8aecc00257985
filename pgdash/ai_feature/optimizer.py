import re
from typing import Any, Dict, List

from pgdash.ai_feature.schemas import (
    Level,
    OptimizationRecommendation,
    RecommendationType,
)


# -----------------------------------------------------------------------------
# OPTIMIZER MODULE
# Purpose: advisory hints for a single query and for a whole database.
# Suggestions never block execution.
# -----------------------------------------------------------------------------

SLOW_QUERY_THRESHOLD_MS = 100
POOL_USAGE_THRESHOLD = 80

_WHERE_COLUMN = re.compile(r"WHERE\s+(\w+)\s*[=<>]", re.IGNORECASE)
_FROM_TABLE = re.compile(r"FROM\s+(\w+)", re.IGNORECASE)


def suggest_optimizations(sql: str) -> List[str]:
    """
    Return optimization hints for a query, in detection order.

    The checks are independent: a bare `SELECT ... ORDER BY` gets both the
    missing-LIMIT and the ORDER BY hint.
    """
    suggestions = []
    upper_sql = sql.upper()

    if "SELECT *" in upper_sql:
        suggestions.append(
            "Consider selecting specific columns instead of using SELECT *"
        )

    if "WHERE" in upper_sql and "LIKE" in upper_sql:
        suggestions.append("Consider using indexes on columns used in LIKE operations")

    if upper_sql.startswith("SELECT") and "LIMIT" not in upper_sql:
        suggestions.append("Consider adding LIMIT clause for large result sets")

    if "ORDER BY" in upper_sql and "LIMIT" not in upper_sql:
        suggestions.append("ORDER BY without LIMIT can be expensive on large tables")

    return suggestions


def suggest_index(query: str) -> str:
    """
    Build a CREATE INDEX statement for the first `WHERE column <op>` of a query.

    Example:
        suggest_index("SELECT * FROM orders WHERE user_id = $1")
        # CREATE INDEX CONCURRENTLY idx_orders_user_id ON orders(user_id);
    """
    where_match = _WHERE_COLUMN.search(query)
    if where_match:
        column = where_match.group(1)
        table_match = _FROM_TABLE.search(query)
        if table_match:
            table = table_match.group(1)
            return f"CREATE INDEX CONCURRENTLY idx_{table}_{column} ON {table}({column});"
    return "-- Unable to suggest specific index"


def generate_optimization_recommendations(
    database_stats: Dict[str, Any],
) -> List[OptimizationRecommendation]:
    """
    Turn gathered database statistics into recommendations.

    Args:
        database_stats: mapping with optional keys
            - "slow_queries": rows with "query" and "mean_time" (ms)
            - "connection_pool_usage": percent of max_connections in use

    Returns:
        Recommendations, slow-query indexes first.
    """
    recommendations = []

    for query in database_stats.get("slow_queries") or []:
        text = query.get("query") or ""
        mean_time = float(query.get("mean_time") or 0)
        if "WHERE" in text and mean_time > SLOW_QUERY_THRESHOLD_MS:
            recommendations.append(
                OptimizationRecommendation(
                    type=RecommendationType.INDEX,
                    title="Add index for slow WHERE clause",
                    description=(
                        f"Query is taking {mean_time:g}ms on average. "
                        "Consider adding an index."
                    ),
                    impact=Level.HIGH,
                    effort=Level.LOW,
                    sql_suggestion=suggest_index(text),
                )
            )

    if (database_stats.get("connection_pool_usage") or 0) > POOL_USAGE_THRESHOLD:
        recommendations.append(
            OptimizationRecommendation(
                type=RecommendationType.PERFORMANCE,
                title="High connection pool usage",
                description=(
                    "Connection pool is at high capacity. "
                    "Consider optimizing connection usage."
                ),
                impact=Level.MEDIUM,
                effort=Level.MEDIUM,
            )
        )

    return recommendations
