"""
Travel Manager — FastAPI application entry-point.

Run with:
    uvicorn travel_manager.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.ext.asyncio import AsyncSession
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from travel_manager import __version__
from travel_manager.config import Settings, settings as default_settings
from travel_manager.database import Database, get_db
from travel_manager.routers import account, admins, auth, downloads, profile, travels
from travel_manager.routers.auth import LOGIN_URL, get_current_user, templates
from travel_manager.schemas.user import CurrentUser
from travel_manager.services import travels as repo
from travel_manager.services.errors import (
    InvalidCoordinatesError,
    LoginRequired,
    UnknownActivityError,
    UnknownTownError,
)

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around ``settings`` (defaults to the environment)."""
    settings = settings or default_settings

    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # ── Lifespan: open the pool, create tables; dispose on shutdown ──
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = Database(
            settings.DATABASE_URL,
            echo=settings.DEBUG,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )
        await db.create_all()
        for sub in ("activities", "profiles"):
            (Path(settings.STATIC_DIR) / sub).mkdir(parents=True, exist_ok=True)
        app.state.db = db
        logger.info(f"{settings.APP_NAME} started")
        try:
            yield
        finally:
            await db.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Plan travels, share them after moderation, export them to KML/KMZ/GPX.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ── Behind a reverse proxy ──
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

    # ── Static files (activity images, avatars); directories made at start-up ──
    app.mount(
        "/static",
        StaticFiles(directory=settings.STATIC_DIR, check_dir=False),
        name="static",
    )

    # ── Error handling ──
    @app.exception_handler(LoginRequired)
    async def login_required_handler(request: Request, exc: LoginRequired):
        return RedirectResponse(url=LOGIN_URL, status_code=status.HTTP_303_SEE_OTHER)

    @app.exception_handler(UnknownActivityError)
    @app.exception_handler(UnknownTownError)
    @app.exception_handler(InvalidCoordinatesError)
    async def bad_reference_handler(request: Request, exc: Exception):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    # ── Routers ──
    app.include_router(auth.router)
    app.include_router(account.router)
    app.include_router(profile.router)
    app.include_router(travels.router)
    app.include_router(travels.api_router)
    app.include_router(admins.router)
    app.include_router(admins.api_router)
    app.include_router(downloads.router)

    # ── Landing page ──
    @app.get("/", response_class=HTMLResponse)
    async def homepage(
        request: Request,
        current_user: Optional[CurrentUser] = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
    ):
        return templates.TemplateResponse(
            request,
            "index.html",
            {
                "current_user": current_user,
                "public_count": await repo.count_public_travels(db),
            },
        )

    return app


app = create_app()
