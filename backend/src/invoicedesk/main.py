"""
FastAPI application entry point.

This is the main application that ties together all components:
- Dashboard routes for invoices and customers
- Login/logout and the dashboard route guard
- Database lifecycle management
- Error handling and logging
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from invoicedesk import __version__
from invoicedesk.api.middleware import AuthGuardMiddleware
from invoicedesk.api.routes import auth, customers, health, invoices, overview
from invoicedesk.config import Settings, get_settings
from invoicedesk.domain.models import PersistenceError
from invoicedesk.infrastructure.cache import PathCache
from invoicedesk.infrastructure.database import Database
from invoicedesk.services.auth import Authenticator, CredentialsProvider, ensure_user

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)


def build_authenticator(database: Database, settings: Settings) -> Authenticator:
    """Credentials sign-in against the users table."""
    return Authenticator(
        {"credentials": CredentialsProvider(database)},
        secret=settings.auth_secret.get_secret_value(),
        ttl_minutes=settings.session_ttl_minutes,
    )


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    revalidator: PathCache | None = None,
    authenticator: Authenticator | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Collaborators passed in are used as-is; any left out are built from
    settings when the application starts.

    Returns:
        Configured FastAPI instance ready to serve requests.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        Startup: build the database handle, create tables, ensure the
        bootstrap user. Shutdown: close the database.
        """
        logger.info(f"Starting invoicedesk v{__version__}")
        logger.info(f"Debug mode: {settings.debug}")

        if app.state.database is None:
            app.state.database = Database.from_settings(settings)
        if app.state.authenticator is None:
            app.state.authenticator = build_authenticator(app.state.database, settings)

        await app.state.database.create_all()

        if settings.admin_email and settings.admin_password:
            await ensure_user(
                app.state.database,
                name=settings.admin_name,
                email=settings.admin_email,
                password=settings.admin_password.get_secret_value(),
            )

        yield  # Application runs here

        # Shutdown
        logger.info("Shutting down invoicedesk")
        await app.state.database.close()

    app = FastAPI(
        title="invoicedesk API",
        description="Invoice and customer administration dashboard.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.state.database = database
    app.state.revalidator = revalidator or PathCache()
    app.state.authenticator = authenticator
    if database is not None and authenticator is None:
        app.state.authenticator = build_authenticator(database, settings)

    app.add_middleware(AuthGuardMiddleware)

    # Register routers
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(overview.router)
    app.include_router(invoices.router)
    app.include_router(customers.router)

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError):
        """Store failures outside the form pipeline; the message is generic."""
        return JSONResponse(
            status_code=500,
            content={"error": "Database Error", "detail": str(exc)},
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler for unhandled errors."""
        logger.exception(f"Unhandled error: {exc}")

        # Don't expose internal errors in production
        if settings.debug:
            detail = str(exc)
        else:
            detail = "An internal error occurred"

        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": detail,
            },
        )

    return app


# Development server entry point
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "invoicedesk.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
