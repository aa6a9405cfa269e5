#!/usr/bin/env python3
"""
Create the matching tables.

Usage:
    python -m database.init_db
"""

import logging
from typing import Optional

from sqlalchemy import inspect, text
from tenacity import retry, stop_after_attempt, wait_fixed

from database import database
from database.models import Base

logger = logging.getLogger(__name__)


@retry(stop=stop_after_attempt(5), wait=wait_fixed(2))
def init_db(url: Optional[str] = None):
    if url:
        database.configure_engine(url)
    engine = database.engine

    logger.info("Initializing database...")
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))

        Base.metadata.create_all(bind=engine)
        tables = sorted(inspect(engine).get_table_names())
        logger.info(f"Tables created or verified: {', '.join(tables)}")

    except Exception as e:
        logger.error(f"Error initializing DB: {e}")
        raise


if __name__ == "__main__":
    from matchmaking.config_loader import load_config

    logging.basicConfig(level=logging.INFO)
    init_db(load_config().database.url)
