import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from brollmix.core.logging import setup_logging
from brollmix.core.settings import settings
from brollmix.api.router import router
from brollmix.utils import cleanup_old_temp_files
from brollmix.workers.queue import get_job_queue

setup_logging(settings.log_level, structured=settings.log_json)
logger = logging.getLogger(__name__)

for d in (settings.temp_dir, settings.download_dir, settings.exports_dir):
    os.makedirs(d, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    cleanup_old_temp_files(settings.temp_dir, settings.temp_max_age_hours)
    logger.info(f"[main] Ready ({settings.app_env})")
    yield
    await get_job_queue().shutdown()


app = FastAPI(title="B-Roll Mixer Backend", version="0.1.0", lifespan=lifespan)

origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)

app.mount("/exports", StaticFiles(directory=settings.exports_dir), name="exports")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("brollmix.main:app", host=settings.app_host, port=settings.app_port)
