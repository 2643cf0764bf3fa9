# squares_backend/main.py
from contextlib import asynccontextmanager
from functools import partial
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .core.registry import PoolRegistry
from .error_handlers import register_error_handlers
from .middleware_logging import register_request_logging
from .routers import games_api, health, ocr_api, pools_api
from .services.live_games import LiveGameStore, apply_snapshot

# =========================
# ---- Config / Env ----
# =========================
settings = get_settings()
DATA_DIR = Path(settings.DATA_DIR)


def build_state(app: FastAPI, data_dir: Path = DATA_DIR) -> None:
    """Registry + live store on app.state; the store reconciles pools on every poll."""
    registry = PoolRegistry(data_dir / settings.POOLS_FILE)
    registry.load()
    app.state.registry = registry
    app.state.live = LiveGameStore(on_update=partial(apply_snapshot, registry))


@asynccontextmanager
async def lifespan(app: FastAPI):
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    if not hasattr(app.state, "registry"):
        build_state(app)
    app.state.live.sync(app.state.registry.linked_game_ids())
    try:
        yield
    finally:
        await app.state.live.stop()


# =========================
# ---- App Init ----
# =========================
app = FastAPI(title="Squares Backend", version="0.1.0", lifespan=lifespan)
register_request_logging(app)
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(ocr_api.router)
app.include_router(games_api.router)
app.include_router(pools_api.router)


@app.get("/")
def root():
    return {"message": "Squares pool tracker backend: grid OCR, live scores, winners."}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("squares_backend.main:app", host="0.0.0.0", port=settings.PORT)
