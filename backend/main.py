import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from config import settings

logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    from services.game_hub import get_game_hub

    # Builds the hub and validates the phrase book before taking traffic
    hub = get_game_hub()
    hub.queue.start()
    logger.info("Junkyard Brawl chat backend starting up...")
    yield
    await hub.queue.stop()
    logger.info("Backend shutting down.")


app = FastAPI(
    title="Junkyard Brawl Chat",
    version="0.1.0",
    description="Chat command routing and session coordination for Junkyard Brawl",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "junkyard-chat", "version": "0.1.0"}


from routers.game_router import router as game_router
from routers.ws_router import router as ws_router

app.include_router(game_router, prefix="/api")
app.include_router(ws_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
