import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from cinema.db.init_db import create_database
from cinema.db.base import Base
from cinema.db.session import engine, SessionLocal
from cinema.core.config import settings
from cinema.core.errors import CinemaError
from cinema.api.v1.router import api_router

logger = logging.getLogger(__name__)


async def _hold_sweep_loop() -> None:
    """Background task: expire stale seat holds every SWEEP_INTERVAL_SECONDS."""
    from cinema.services.sweeper import run_sweep

    while True:
        try:
            # Off the event loop so requests are served during a sweep
            await asyncio.to_thread(run_sweep, SessionLocal)
        except Exception:
            logger.exception("Error during seat hold sweep.")
        await asyncio.sleep(settings.SWEEP_INTERVAL_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists and create tables
    create_database()
    Base.metadata.create_all(bind=engine)

    # Run an immediate sweep, then keep running in the background
    sweep_task = asyncio.create_task(_hold_sweep_loop())
    yield

    # Shutdown: cancel background task
    sweep_task.cancel()
    try:
        await sweep_task
    except asyncio.CancelledError:
        pass


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CinemaError)
async def cinema_error_handler(request: Request, exc: CinemaError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
def read_root():
    return {"Hello": "Cinema"}
