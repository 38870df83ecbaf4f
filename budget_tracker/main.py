# budget_tracker/main.py
import os
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from budget_tracker.core.config import Settings, load_settings
from budget_tracker.core.database import create_db_and_tables, create_engine_from_settings, create_session_factory
from budget_tracker.core.auth import fastapi_users, auth_backend, UserRead, UserCreate
from budget_tracker.crud.category import seed_default_categories
from budget_tracker.api.v1.routes import auth, budgets, categories, transactions, users

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


async def init_database(app: FastAPI) -> None:
    """Create tables and seed the default categories."""
    settings: Settings = app.state.settings
    await create_db_and_tables(app.state.engine)
    logger.info("✅ Database tables created successfully")

    if settings.SEED_DEFAULT_CATEGORIES:
        async with app.state.session_factory() as session:
            await seed_default_categories(session)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await init_database(app)
    except Exception as e:
        logger.error(f"❌ Startup error: {str(e)}")
        raise
    logger.info(f"✅ Frontend URL: {app.state.settings.FRONTEND_URL}")
    yield
    await app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()

    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.VERSION,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Authentication", "description": "Registration, login and password reset"},
            {"name": "User Management", "description": "Profile and password of the current user"},
            {"name": "budgets", "description": "Monthly budgets, status and yearly summary"},
        ],
    )

    # Explicit configuration and database handles, read back by dependencies
    app.state.settings = settings
    app.state.engine = create_engine_from_settings(settings)
    app.state.session_factory = create_session_factory(app.state.engine)

    # CORS Configuration
    origins = [
        settings.FRONTEND_URL,
        "http://localhost:3000",  # Local development
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for better error responses"""
        if isinstance(exc, HTTPException):
            return JSONResponse(
                status_code=exc.status_code,
                content={"detail": exc.detail}
            )

        logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"}
        )

    # ------------------------------------------------------------
    # AUTHENTICATION ROUTES
    # ------------------------------------------------------------
    # Custom logout goes before the fastapi-users routers
    app.include_router(auth.router, prefix=f"{API_PREFIX}/auth")
    app.include_router(
        fastapi_users.get_auth_router(auth_backend),
        prefix=f"{API_PREFIX}/auth/jwt",
        tags=["Authentication"],
    )
    app.include_router(
        fastapi_users.get_register_router(UserRead, UserCreate),
        prefix=f"{API_PREFIX}/auth",
        tags=["Authentication"],
    )
    app.include_router(
        fastapi_users.get_reset_password_router(),
        prefix=f"{API_PREFIX}/auth",
        tags=["Authentication"],
    )

    # ------------------------------------------------------------
    # ROOT / HEALTH
    # ------------------------------------------------------------
    @app.get("/", tags=["Root"])
    async def root():
        return {
            "message": f"{settings.APP_NAME} is running!",
            "version": settings.VERSION,
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        try:
            async with app.state.session_factory() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Health check failed: {str(e)}")
            raise HTTPException(status_code=503, detail="Service unhealthy: database unavailable")
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
        }

    # ------------------------------------------------------------
    # BUSINESS LOGIC ROUTES
    # ------------------------------------------------------------
    app.include_router(users.router, prefix=API_PREFIX)
    app.include_router(categories.router, prefix=API_PREFIX)
    app.include_router(transactions.router, prefix=API_PREFIX)
    app.include_router(budgets.router, prefix=API_PREFIX)

    return app


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("budget_tracker.main:create_app", factory=True, host="0.0.0.0", port=port, reload=False)
