"""Create the posts table in the configured database.

Usage:
    DATABASE_URL=sqlite+aiosqlite:///./postboard.db python -m scripts.init_db
"""

import asyncio
import logging
import sys

from postboard.config import get_settings
from postboard.middleware import configure_logging
from postboard.services.post_store import PostStore, StoreError, create_engine

logger = logging.getLogger("scripts.init_db")


async def main() -> int:
    settings = get_settings()
    configure_logging(settings.log_level)

    store = PostStore(create_engine(settings.database_url))
    try:
        await store.create_schema()
        await store.verify_schema()
    except StoreError as e:
        logger.error("Schema setup failed: %s", e)
        return 1
    finally:
        await store.dispose()

    print(f"Schema ready at {store.engine.url.render_as_string(hide_password=True)}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
