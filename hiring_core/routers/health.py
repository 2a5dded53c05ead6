"""Health check router."""

import logging
from pathlib import Path
from typing import Optional

from alembic.config import Config
from alembic.script import ScriptDirectory
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hiring_core.core.config import settings
from hiring_core.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

_PROJECT_ROOT = Path(__file__).resolve().parents[2]


def migration_head() -> Optional[str]:
    """Newest revision shipped with the code, or None outside a source checkout."""
    cfg_path = _PROJECT_ROOT / "alembic.ini"
    script_location = _PROJECT_ROOT / "alembic"
    if not cfg_path.exists() or not script_location.exists():
        return None
    config = Config(str(cfg_path))
    config.set_main_option("script_location", str(script_location))
    return ScriptDirectory.from_config(config).get_current_head()


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Reports database reachability and whether migrations are at head."""
    db_ok = True
    schema_revision: Optional[str] = None
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Health check could not reach the database", exc_info=True)
        db_ok = False

    if db_ok:
        try:
            result = await db.execute(text("SELECT version_num FROM alembic_version"))
            schema_revision = result.scalar_one_or_none()
        except SQLAlchemyError:
            # Not migrated with alembic (e.g. created from metadata)
            await db.rollback()

    head = migration_head()
    return {
        "app": settings.APP_NAME,
        "api_ok": True,
        "db_ok": db_ok,
        "schema_revision": schema_revision,
        "migration_head": head,
        "migrations_current": bool(schema_revision and head and schema_revision == head),
    }
