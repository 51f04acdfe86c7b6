import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from kinbook.config import settings
from kinbook.database import Base, engine
from kinbook.errors import register_exception_handlers
from kinbook.logging_config import configure_logging

# Import models so SQLAlchemy registers tables
from kinbook.models import (  # noqa: F401
    user,
    person,
    person_link,
    family,
    event,
    memory,
)

# Routers
from kinbook.routers import (
    auth_router,
    people_router,
    family_router,
    timeline_router,
)


logger = logging.getLogger(__name__)


def create_app(create_tables: bool = True) -> FastAPI:
    configure_logging()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Backend API for the Kinbook family record application.",
        version="1.0.0",
    )

    # -----------------------
    # CORS
    # -----------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # -----------------------
    # DATABASE TABLES
    # -----------------------
    if create_tables:
        Base.metadata.create_all(bind=engine)

    # -----------------------
    # STATIC MEDIA FILES
    # -----------------------
    if settings.STORAGE_BACKEND == "local":
        os.makedirs(settings.LOCAL_MEDIA_PATH, exist_ok=True)
        app.mount(
            "/media",
            StaticFiles(directory=settings.LOCAL_MEDIA_PATH),
            name="media",
        )

    # -----------------------
    # ROUTES
    # -----------------------
    app.include_router(auth_router.router)
    app.include_router(people_router.router)
    app.include_router(family_router.router)
    app.include_router(timeline_router.router)

    # -----------------------
    # HEALTH CHECK
    # -----------------------
    @app.get("/")
    def root():
        return {"message": "Kinbook API is running!"}

    logger.info(
        "Kinbook API ready (env=%s, auth=%s, storage=%s)",
        settings.ENV,
        settings.AUTH_BACKEND,
        settings.STORAGE_BACKEND,
    )
    return app


app = create_app()
