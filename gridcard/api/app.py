"""FastAPI app, CORS, error envelope, and route registration."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(name)s: %(message)s",
)

from gridcard.api.responses import register_exception_handlers
from gridcard.api.routes import auth, card, myo
from gridcard.api.state import AppState, get_state
from gridcard.config import ensure_data_dir

__all__ = ["app", "AppState", "get_state"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_data_dir()
    logging.getLogger(__name__).info("gridcard API ready")
    yield
    get_state().close()


app = FastAPI(
    title="Gridcard API",
    description="Builds Formula 1 audio cards for Yoto players",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(card.router, prefix="/api", tags=["card"])
app.include_router(myo.router, prefix="/api", tags=["myo"])
