from typing import Dict, List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from pgdash.core import models
from pgdash.core.config import settings


def migration_targets(env: Optional[str] = None) -> Dict[str, str]:
    """
    Databases an Alembic run should upgrade.

    Every managed environment owns its own migration ledger, so all of them
    are targeted unless one is picked (`alembic -x env=prod upgrade head`).
    """
    urls = settings.database_urls
    if env is None:
        return dict(urls)
    if env not in urls:
        raise ValueError(f"Unknown environment '{env}', expected one of {sorted(urls)}")
    return {env: urls[env]}


async def list_migrations(db: AsyncSession) -> List[models.MigrationStatus]:
    """Migration ledger, newest version first."""
    query = select(models.MigrationStatus).order_by(desc(models.MigrationStatus.version))
    result = await db.execute(query)
    return list(result.scalars().all())
