"""Entry point for the talking avatar speech classification service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.routes import router as api_router
from config.settings import get_settings
from media.catalog import ClipCatalog

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    LOGGER.info("Classifying speech with provider %s (%s)", settings.llm_provider, settings.llm_model)
    if settings.clip_directory is not None:
        # Served clips and category ids must line up before any session asks for them.
        ClipCatalog.from_settings().verify(settings.clip_directory)
    yield


app = FastAPI(
    title="Talking Avatar Speech Classifier",
    description="Classifies user utterances into avatar response clips.",
    lifespan=lifespan,
)
app.include_router(api_router, prefix="/api")
