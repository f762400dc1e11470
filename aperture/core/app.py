from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from aperture.api.main import api_router

from .config import settings
from .logging import setup_logging
from .version import __version__

setup_logging()

app = FastAPI(
    title=settings.APP_NAME,
    description="Recommendation scoring and diversity selection for self-hosted media servers",
    version=__version__,
    docs_url=None if settings.APP_ENV != "development" else "/docs",
    redoc_url=None if settings.APP_ENV != "development" else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)
