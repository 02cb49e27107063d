"""FastAPI application serving the persona engine.

Provides:
- /api/v1/persona: persona state, radar frames and mutations
- /health: liveness probe
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from personaengine import __version__, configure_logging
from personaengine.api import persona
from personaengine.api.persona import router as persona_router

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load the active persona before serving; flush backend pushes on exit."""
    configure_logging()
    controller = persona._get_controller()
    logger.info(
        "Persona engine ready: budget=%d, profile=%s",
        controller.rules.budget,
        controller.state.profile_id or "local",
    )
    yield
    logger.info("Persona engine shutting down")
    persona.shutdown()


app = FastAPI(
    title="PersonaEngine",
    description="Trait weights, point allocation and persona classification",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(persona_router)


@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok", "version": __version__}
