from sqlalchemy import Column, Integer, String, TIMESTAMP, Text
from sqlalchemy.sql import func

from pgdash.core.database import Base


# =========================
# Migration ledger
# =========================
class MigrationStatus(Base):
    """
    One row per schema migration applied to a managed database.

    The dashboard only reads this table; rows are written by whatever
    deploy tooling applies the migrations.
    """

    __tablename__ = "migration_status"

    id = Column(Integer, primary_key=True, autoincrement=True)

    version = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text)
    status = Column(String, nullable=False, server_default="applied")

    applied_at = Column(
        TIMESTAMP(timezone=True),
        nullable=True,
        server_default=func.now(),
    )
