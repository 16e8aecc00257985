from pgdash.ai_feature.optimizer import (
    generate_optimization_recommendations,
    suggest_index,
    suggest_optimizations,
)
from pgdash.ai_feature.schemas import RecommendationType

SELECT_STAR = "Consider selecting specific columns instead of using SELECT *"
LIKE_INDEX = "Consider using indexes on columns used in LIKE operations"
ADD_LIMIT = "Consider adding LIMIT clause for large result sets"
ORDER_BY = "ORDER BY without LIMIT can be expensive on large tables"


def test_select_star_without_limit():
    assert suggest_optimizations("SELECT * FROM users") == [SELECT_STAR, ADD_LIMIT]


def test_order_by_without_limit_gets_both_hints():
    assert suggest_optimizations("select name from users order by name") == [
        ADD_LIMIT,
        ORDER_BY,
    ]


def test_like_with_limit():
    sql = "SELECT * FROM users WHERE name LIKE 'a%' LIMIT 5"
    assert suggest_optimizations(sql) == [SELECT_STAR, LIKE_INDEX]


def test_limit_check_only_applies_to_select():
    assert suggest_optimizations("UPDATE users SET a = 1 WHERE name LIKE 'a'") == [
        LIKE_INDEX
    ]


def test_clean_query_has_no_suggestions():
    assert suggest_optimizations("SELECT id FROM users LIMIT 10") == []


def test_suggest_index():
    assert (
        suggest_index("SELECT * FROM orders WHERE user_id = $1")
        == "CREATE INDEX CONCURRENTLY idx_orders_user_id ON orders(user_id);"
    )
    assert suggest_index("SELECT 1") == "-- Unable to suggest specific index"


def test_recommendations_for_slow_where_queries():
    stats = {
        "slow_queries": [
            {"query": "SELECT * FROM orders WHERE user_id = $1", "mean_time": 150.0},
            {"query": "SELECT * FROM orders WHERE id = $1", "mean_time": 20.0},
            {"query": "SELECT * FROM orders", "mean_time": 900.0},
        ]
    }
    recommendations = generate_optimization_recommendations(stats)

    assert len(recommendations) == 1
    recommendation = recommendations[0]
    assert recommendation.type == RecommendationType.INDEX
    assert recommendation.description.startswith("Query is taking 150ms")
    assert recommendation.sql_suggestion.startswith("CREATE INDEX CONCURRENTLY")


def test_recommendation_for_high_pool_usage():
    recommendations = generate_optimization_recommendations(
        {"slow_queries": [], "connection_pool_usage": 85}
    )
    assert [r.type for r in recommendations] == [RecommendationType.PERFORMANCE]


def test_no_stats_no_recommendations():
    assert generate_optimization_recommendations({}) == []
