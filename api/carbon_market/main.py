from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from carbon_market.config import Settings, get_settings
from carbon_market.exceptions import CarbonMarketError
from carbon_market.routers import auth, organizations, users, commute_logs, listings, purchases
from carbon_market.services.users import ensure_system_admin
from carbon_market.storage import Store, build_store

logger = structlog.get_logger()


def create_app(settings: Optional[Settings] = None, store: Optional[Store] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.store = store or build_store(settings)
        await app.state.store.connect()
        await ensure_system_admin(
            app.state.store,
            settings.BOOTSTRAP_ADMIN_USERNAME,
            settings.BOOTSTRAP_ADMIN_PASSWORD,
            settings.BOOTSTRAP_ADMIN_NAME,
        )
        logger.info(
            "Carbon market API starting",
            environment=settings.ENVIRONMENT,
            storage=type(app.state.store).__name__,
        )
        yield
        await app.state.store.close()
        logger.info("Carbon market API shutting down")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Commute carbon credits and an inter-organization credit marketplace",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CarbonMarketError)
    async def carbon_market_error_handler(request: Request, exc: CarbonMarketError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error": exc.kind},
        )

    # Include routers
    app.include_router(auth.router, prefix=settings.API_PREFIX)
    app.include_router(organizations.router, prefix=settings.API_PREFIX)
    app.include_router(users.router, prefix=settings.API_PREFIX)
    app.include_router(commute_logs.router, prefix=settings.API_PREFIX)
    app.include_router(listings.router, prefix=settings.API_PREFIX)
    app.include_router(purchases.router, prefix=settings.API_PREFIX)

    @app.get("/health")
    async def health():
        return {"status": "healthy", "service": "carbon-market-api", "version": "1.0.0"}

    @app.get("/")
    async def root():
        return {
            "message": settings.APP_NAME,
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()
