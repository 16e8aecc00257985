from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from pgdash.ai_feature.schemas import (
    OptimizationRecommendation,
    QueryAnalysis,
)


# =========================
# ROLES ("users")
# =========================
class RoleFlags(BaseModel):
    can_create_db: bool = False
    is_superuser: bool = False
    can_replicate: bool = False


class CreateRole(RoleFlags):
    username: str = Field(min_length=1, max_length=63)
    password: str = Field(min_length=1)


class UpdateRole(BaseModel):
    # Unset flags are left untouched
    can_create_db: Optional[bool] = None
    is_superuser: Optional[bool] = None
    can_replicate: Optional[bool] = None
    new_password: Optional[str] = None


class DisplayNameUpdate(BaseModel):
    display_name: str


class RoleResponse(BaseModel):
    username: str
    can_create_db: bool
    is_superuser: bool
    can_replicate: bool
    password_expiry: Optional[datetime] = None
    display_name: str


class RoleChangeResponse(BaseModel):
    message: str
    username: str
    display_name: Optional[str] = None


# =========================
# MIGRATIONS
# =========================
class MigrationResponse(BaseModel):
    id: int
    version: str
    name: str
    description: Optional[str] = None
    status: str
    applied_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# =========================
# QUERY EXECUTION
# =========================
class QueryRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    query: str = Field(min_length=1)
    readonly: bool = True


class QueryResponse(BaseModel):
    rows: List[Dict[str, Any]]
    row_count: int
    execution_time: float
    fields: List[str] = []
    command: str


# =========================
# AI ASSISTANT
# =========================
class NaturalLanguageRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    query: str = Field(min_length=1)


class NaturalLanguageResponse(BaseModel):
    success: bool = True
    result: QueryAnalysis
    timestamp: datetime


class ExecuteQueryRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    sql: str = Field(min_length=1)
    safety_check: bool = True


class ExecuteQueryResponse(BaseModel):
    success: bool = True
    data: List[Dict[str, Any]]
    row_count: int
    execution_time: float
    fields: List[str] = []
    timestamp: datetime


class OptimizationResponse(BaseModel):
    success: bool = True
    recommendations: List[OptimizationRecommendation]
    database_stats: Dict[str, Any]
    timestamp: datetime


class SecurityAuditResponse(BaseModel):
    success: bool = True
    alerts: List[Dict[str, Any]]
    details: Dict[str, List[Dict[str, Any]]]
    timestamp: datetime
