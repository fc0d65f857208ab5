from fastapi import APIRouter
from brollmix.api.routes.health import router as health
from brollmix.api.routes.jobs import router as jobs
from brollmix.api.routes.options import router as options

router = APIRouter()
router.include_router(health)
router.include_router(jobs)
router.include_router(options)
