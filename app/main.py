import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.routers import ws
from app.services.websocket.manager import get_connection_manager

logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Shogi Orchestrator API")
    logger.debug("Debug mode: %s", settings.DEBUG)

    connection_manager = get_connection_manager()
    logger.info(
        "WebSocket connection manager initialized (default mode: %s, strategy: %s)",
        settings.DEFAULT_GAME_MODE.value,
        settings.OPPONENT_STRATEGY,
    )

    yield

    # Shutdown: stop every game and release the move supplier
    logger.info("Shutting down Shogi Orchestrator API")
    await connection_manager.close_all_connections()
    logger.info("WebSocket cleanup complete")


app = FastAPI(
    title="Shogi Orchestrator API",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.debug("CORS configured with origins: %s", settings.CORS_ORIGINS)

app.include_router(ws.router, prefix="/api/v1")
logger.debug("Routers registered: /api/v1/ws")


@app.get("/")
def root():
    return {"message": "Shogi Orchestrator API"}


@app.get("/health")
def health():
    return {"status": "healthy"}
