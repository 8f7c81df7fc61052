"""
LaunchPad - Business Idea Validation Agents
Main FastAPI Application
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from launchpad.config import get_settings
from launchpad.exceptions import AgentError, http_status_for

logger = logging.getLogger(__name__)


def _is_serverless() -> bool:
    """Check if running in serverless environment"""
    return bool(os.environ.get("VERCEL") or os.environ.get("AWS_LAMBDA_FUNCTION_NAME"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Skip table creation in serverless
    if not _is_serverless():
        from launchpad.utils import init_db, close_db
        await init_db()
        yield
        await close_db()
    else:
        yield


def create_app() -> FastAPI:
    """Factory function to create FastAPI app"""
    settings = get_settings()

    application = FastAPI(
        title="LaunchPad API",
        description="""
        Business idea validation with research-backed AI agents

        ## Agents
        - MarketMapper: market sizing, audience segments, positioning, clarifying questions
        - CompetitorGPT: competitive landscape and strategic advantages
        - MVP Architect: feature scope, tech stack, timeline and budget

        Each agent run costs one credit and is refunded if the run fails.
        """,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc" if settings.is_development else None,
    )

    # CORS middleware
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.exception_handler(AgentError)
    async def agent_error_handler(request: Request, exc: AgentError):
        """Map pipeline errors to their HTTP status"""
        status_code = http_status_for(exc)
        if status_code >= 500:
            logger.error("%s on %s: %s", exc.code, request.url.path, exc.message)
        content = {"detail": exc.message, "kind": exc.code}
        field = getattr(exc, "field", None)
        if field:
            content["field"] = field
        return JSONResponse(status_code=status_code, content=content)

    # Global exception handler
    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors"""
        logger.exception("Unhandled error on %s", request.url.path)
        settings = get_settings()
        if settings.DEBUG:
            return JSONResponse(
                status_code=500,
                content={"detail": str(exc), "kind": type(exc).__name__},
            )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "kind": "INTERNAL_ERROR"},
        )

    from launchpad.api.routes import api_router
    application.include_router(api_router, prefix=f"/api/{settings.API_VERSION}")

    # Health check
    @application.get("/health")
    async def health_check():
        """Health check endpoint"""
        settings = get_settings()
        return {
            "status": "healthy",
            "version": "1.0.0",
            "environment": settings.APP_ENV,
        }

    return application


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()

    uvicorn.run(
        "launchpad.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        workers=1 if settings.is_development else settings.WORKERS,
    )
