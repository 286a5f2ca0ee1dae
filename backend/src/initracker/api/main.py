import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from initracker.config import get_settings
from initracker.db.init_db import init_db
from initracker.api.routers.combats import router as combats_router
from initracker.api.routers.dice import router as dice_router
from initracker.api.routers.encounters import router as encounters_router
from initracker.api.routers.monsters import router as monsters_router
from initracker.api.routers.transfer import router as transfer_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_db()
    logger.info("database ready")
    yield


app = FastAPI(title="Initiative Tracker", lifespan=lifespan)


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(monsters_router)
app.include_router(encounters_router)
app.include_router(combats_router)
app.include_router(dice_router)
app.include_router(transfer_router)
