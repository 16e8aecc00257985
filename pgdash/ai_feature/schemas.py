from enum import Enum
from typing import List, Optional, Pattern

from pydantic import BaseModel, ConfigDict, Field


# =========================
# Enums
# =========================
class QueryCategory(str, Enum):
    SELECT = "SELECT"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    DDL = "DDL"
    ANALYSIS = "ANALYSIS"


class RecommendationType(str, Enum):
    INDEX = "INDEX"
    PERFORMANCE = "PERFORMANCE"


class Level(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


# =========================
# RULES
# =========================
class PatternRule(BaseModel):
    """
    A single natural-language rule: when `pattern` matches the normalized
    request, `template` is the SQL to run. `{param}` in the template is
    replaced with the first group captured by the pattern.
    """

    key: str
    pattern: Pattern[str]
    template: str
    confidence: float = Field(gt=0, le=1)

    model_config = ConfigDict(frozen=True)


# =========================
# RESULTS
# =========================
class SafetyVerdict(BaseModel):
    safe: bool
    warnings: List[str] = []

    model_config = ConfigDict(frozen=True)


class MatchResult(BaseModel):
    matched: bool
    confidence: float
    sql: str
    explanation: str
    category: QueryCategory
    extracted_parameter: Optional[str] = None
    # None when the keyword fallback produced the SQL
    rule_key: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_fallback(self) -> bool:
        return self.rule_key is None


class QueryAnalysis(MatchResult):
    """Match result enriched with the static checks run on its SQL."""

    security_check: SafetyVerdict
    optimization_suggestions: List[str] = []


class OptimizationRecommendation(BaseModel):
    type: RecommendationType
    title: str
    description: str
    impact: Level
    effort: Level
    sql_suggestion: Optional[str] = None
