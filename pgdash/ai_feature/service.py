"""Natural-language to SQL assistant.

Flow:
1. Parse intent against the ordered pattern table
2. Generate SQL from the winning template (or a keyword fallback)
3. Validate SQL safety
4. Attach optimization hints

The service never refuses: when nothing matches confidently it still returns
a low-confidence `SELECT ... LIMIT 10` guess, flagged by `rule_key=None`.
"""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from pgdash.ai_feature import optimizer, safety
from pgdash.ai_feature.patterns import DEFAULT_RULES, KNOWN_TABLES
from pgdash.ai_feature.schemas import (
    MatchResult,
    OptimizationRecommendation,
    PatternRule,
    QueryAnalysis,
    QueryCategory,
    SafetyVerdict,
)

logger = logging.getLogger(__name__)

CONFIDENCE_THRESHOLD = 0.7
FALLBACK_CONFIDENCE = 0.5
PARAM_PLACEHOLDER = "{param}"

_QUOTES = re.compile(r"['\"]")

_CATEGORY_PREFIXES = (
    ("SELECT", QueryCategory.SELECT),
    ("INSERT", QueryCategory.INSERT),
    ("UPDATE", QueryCategory.UPDATE),
    ("DELETE", QueryCategory.DELETE),
    ("CREATE", QueryCategory.DDL),
    ("ALTER", QueryCategory.DDL),
    ("DROP", QueryCategory.DDL),
)


class AIQueryService:
    """Stateless matcher over a read-only rule table."""

    def __init__(
        self,
        rules: Iterable[PatternRule] = DEFAULT_RULES,
        confidence_threshold: float = CONFIDENCE_THRESHOLD,
        known_tables: Iterable[str] = KNOWN_TABLES,
    ):
        self.rules = tuple(rules)
        self.confidence_threshold = confidence_threshold
        self.known_tables = tuple(known_tables)

    # -------------------------------------------------------------------------
    # Matching
    # -------------------------------------------------------------------------
    def match_intent(self, text: str) -> MatchResult:
        clean_input = text.strip().lower()
        best_rule = None
        best_match = None
        highest_confidence = 0.0

        # Strict ">" keeps the first rule on equal confidence
        for rule in self.rules:
            match = rule.pattern.search(clean_input)
            if match and rule.confidence > highest_confidence:
                best_rule, best_match = rule, match
                highest_confidence = rule.confidence

        if best_rule is None or highest_confidence < self.confidence_threshold:
            return self.generate_fallback_query(text)

        extracted_param = self._extract_parameter(best_match)
        sql = best_rule.template
        if extracted_param and PARAM_PLACEHOLDER in sql:
            sql = sql.replace(PARAM_PLACEHOLDER, extracted_param)

        logger.debug(f"Matched rule {best_rule.key} ({highest_confidence})")
        return MatchResult(
            matched=True,
            confidence=highest_confidence,
            sql=sql,
            explanation=self.generate_explanation(text, sql),
            category=self.categorize_query(sql),
            extracted_parameter=extracted_param,
            rule_key=best_rule.key,
        )

    @staticmethod
    def _extract_parameter(match: re.Match) -> Optional[str]:
        if match.re.groups < 1 or match.group(1) is None:
            return None
        return _QUOTES.sub("", match.group(1).strip())

    def generate_fallback_query(self, text: str) -> MatchResult:
        """
        Guess a table from the words of the request.

        A word matches a known table by its plural or singular form
        ("order" and "orders" both pick `orders`); `users` is the default.
        """
        keywords = set(text.lower().split())
        detected_table = next(
            (
                table
                for table in self.known_tables
                if table in keywords or table[:-1] in keywords
            ),
            self.known_tables[0] if self.known_tables else "users",
        )

        sql = f"SELECT * FROM {detected_table} LIMIT 10"
        logger.debug(f"No confident rule for {text!r}, falling back to {detected_table}")
        return MatchResult(
            matched=True,
            confidence=FALLBACK_CONFIDENCE,
            sql=sql,
            explanation=(
                f"Generated a basic query for table '{detected_table}' based on "
                "your input. Consider being more specific for better results."
            ),
            category=QueryCategory.SELECT,
        )

    def process_natural_language(self, text: str) -> QueryAnalysis:
        result = self.match_intent(text)
        return QueryAnalysis(
            **result.model_dump(),
            security_check=self.perform_security_check(result.sql),
            optimization_suggestions=self.get_optimization_suggestions(result.sql),
        )

    # -------------------------------------------------------------------------
    # Describing SQL
    # -------------------------------------------------------------------------
    @staticmethod
    def categorize_query(sql: str) -> QueryCategory:
        upper_sql = sql.upper().strip()
        for prefix, category in _CATEGORY_PREFIXES:
            if upper_sql.startswith(prefix):
                return category
        return QueryCategory.ANALYSIS

    @staticmethod
    def describe_query(sql: str) -> str:
        upper_sql = sql.upper().strip()

        if upper_sql.startswith("SELECT COUNT(*)"):
            return "count the number of records"
        if not upper_sql.startswith("SELECT"):
            return "perform the requested database operation"
        if "ORDER BY" in upper_sql and "DESC" in upper_sql:
            return "retrieve records sorted by the most recent first"
        if "WHERE" in upper_sql:
            return "retrieve records that match specific conditions"
        return "retrieve records from the database"

    def generate_explanation(self, original_input: str, generated_sql: str) -> str:
        return (
            f'Generated SQL query based on your request: "{original_input}". '
            f"This query will {self.describe_query(generated_sql)}."
        )

    # -------------------------------------------------------------------------
    # Static checks
    # -------------------------------------------------------------------------
    @staticmethod
    def perform_security_check(sql: str) -> SafetyVerdict:
        return safety.check_safety(sql)

    @staticmethod
    def get_optimization_suggestions(sql: str) -> List[str]:
        return optimizer.suggest_optimizations(sql)

    @staticmethod
    def generate_optimization_recommendations(
        database_stats: Dict[str, Any],
    ) -> List[OptimizationRecommendation]:
        return optimizer.generate_optimization_recommendations(database_stats)


# Shared by every request handler; holds no mutable state
ai_query_service = AIQueryService()
