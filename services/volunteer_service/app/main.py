"""FastAPI application for the Volunteer Service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from services.volunteer_service.routers import admin_router, volunteer_router


def create_app() -> FastAPI:
    """Create and configure the Volunteer Service FastAPI app."""
    app = FastAPI(
        title="Volunteer Hours Service",
        version="0.1.0",
        description="Volunteer service hours: submissions, review, tiers, badges and referrals.",
    )
    add_observability_middleware(app)
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "volunteer"}

    app.include_router(volunteer_router)
    app.include_router(admin_router)

    return app


app = create_app()
