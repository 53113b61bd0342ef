#!/usr/bin/env python3
# init_db.py
"""
Database initialization script.

Creates every table straight from the models, for throwaway development
databases. Real deployments run ``alembic upgrade head`` instead.

    python init_db.py
"""
import logging

from cultivation.database import engine
from cultivation.models import Base
from cultivation.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Create all database tables defined in models."""
    logger.info(f"Creating database tables on {engine.url.render_as_string(hide_password=True)}")
    Base.metadata.create_all(bind=engine)
    logger.info(f"Created tables: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    setup_logging()
    init_db()
