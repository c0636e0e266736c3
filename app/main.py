import asyncio
import logging

from fastapi import FastAPI
from contextlib import asynccontextmanager
from app.db.init_db import create_database
from app.db.base import Base
from app.db.session import engine, SessionLocal
from app.core.config import settings
from app.core.exception_handlers import register_exception_handlers
from app.api.v1.router import api_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def _stats_cleanup_loop() -> None:
    """Background task: drop movie stats older than the retention window."""
    from app.services.movie_stats import prune_movie_stats

    while True:
        try:
            db = SessionLocal()
            try:
                count = prune_movie_stats(db, settings.STATS_RETENTION_DAYS)
                if count:
                    logger.info("Removed %d old movie stats entr(y/ies).", count)
            finally:
                db.close()
        except Exception:
            logger.exception("Error during movie stats cleanup.")
        await asyncio.sleep(settings.STATS_CLEANUP_INTERVAL_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists and create tables
    if settings.AUTO_CREATE_DATABASE:
        create_database()
    Base.metadata.create_all(bind=engine)

    # Run an immediate cleanup, then keep running in the background
    cleanup_task = asyncio.create_task(_stats_cleanup_loop())
    yield

    # Shutdown: cancel background task
    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass


from fastapi.middleware.cors import CORSMiddleware

app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
def read_root():
    return {"message": "Cinema Booking API", "data": None}
