"""Daylight API: geocode cache, analytics and export."""

import contextlib
import logging
import os
from collections.abc import AsyncGenerator

import fastapi
import uvicorn

import common.app
import common.settings
from daylight.app import database, routes

logger = logging.getLogger(__name__)

PORT = int(os.environ.get('PORT', '3001'))


@contextlib.asynccontextmanager
async def lifespan(app: fastapi.FastAPI) -> AsyncGenerator[None, None]:
    """Initialize the database on startup."""
    database.create_db_and_tables()
    logger.info('Database: %s', database.DATABASE_URL)
    logger.info('Allowed origins: %s', ', '.join(common.settings.ALLOWED_ORIGINS))
    yield


app = common.app.create_app('Daylight', lifespan=lifespan)
app.include_router(routes.router)


if __name__ == '__main__':
    uvicorn.run(app, host='0.0.0.0', port=PORT)
