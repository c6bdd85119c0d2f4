#!/usr/bin/env python3
"""Seed a development database with a few sample projects.

Usage:
    python scripts/seed_dev_data.py

Reads DATABASE_URL (or the DB_* variables) like the server does. Creates the
table when missing and does nothing if projects already exist.
"""

import asyncio

import structlog

from portfolio.core.config import get_settings
from portfolio.core.database import Database
from portfolio.core.logging import configure_logging
from portfolio.schemas.projects import ProjectForm
from portfolio.services.projects import ProjectRepository

log = structlog.get_logger()

SAMPLE_PROJECTS = [
    ("Weather Dashboard", "Forecasts from public APIs rendered as charts."),
    ("Recipe Box", "Personal recipe collection with tag search."),
    ("Trail Log", None),
]


async def seed():
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    database = Database(settings.database_url, echo=settings.debug)
    repo = ProjectRepository(database)
    try:
        await database.create_all()
        if await repo.list_all():
            log.info("seed.skipped", reason="projects already present")
            return
        for title, description in SAMPLE_PROJECTS:
            await repo.create(ProjectForm(title=title, description=description))
        log.info("seed.done", projects=len(SAMPLE_PROJECTS))
    finally:
        await database.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
