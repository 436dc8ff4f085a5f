"""
NodeFlow - FastAPI Application Entry Point.

An async workflow execution engine for typed node graphs.
"""

from typing import Optional
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from nodeflow.config import settings
from nodeflow.api.routes import nodes, runs, websocket, workflows
from nodeflow.services import WorkflowService


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


DESCRIPTION = """
## Workflow Engine API

Build workflows from typed nodes and run them in dependency order.

### Features
- **Nodes**: Typed steps (web scraping, LLM task, embeddings, ...) with per-node config
- **Edges**: Directed dependencies; cycles are rejected before anything runs
- **Ordering**: Deterministic topological order
- **Fail fast**: The first failing node halts the run
- **Real-time Updates**: WebSocket streaming of node progress

### Quick Start
1. List node types: `GET /nodes`
2. Create a workflow: `POST /workflows`
3. Run it: `POST /workflows/{workflow_id}/run`
4. Inspect the run: `GET /runs/{run_id}`

### Templates
Example workflows such as `content-marketing-automation` are available at startup.
"""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    if settings.LOAD_TEMPLATES:
        await app.state.service.seed_templates()

    yield

    # Shutdown
    if app.state.service.stop():
        logger.info("Stopped in-flight workflow run")
    logger.info("Shutting down...")


def create_app(service: Optional[WorkflowService] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        service: Workflow service to serve (a fresh one if not provided)

    Returns:
        The configured application
    """
    app = FastAPI(
        title=settings.APP_NAME,
        description=DESCRIPTION,
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.service = service or WorkflowService()

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(workflows.router)
    app.include_router(runs.router)
    app.include_router(nodes.router)
    app.include_router(websocket.router)

    # ============================================================
    # Root Endpoints
    # ============================================================

    @app.get("/", tags=["Root"])
    async def root():
        """API root - returns basic info and links."""
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "description": "An async workflow execution engine for typed node graphs",
            "docs": "/docs",
            "redoc": "/redoc",
            "endpoints": {
                "workflows": "/workflows",
                "runs": "/runs",
                "nodes": "/nodes",
                "websocket_run": "/ws/run/{workflow_id}",
            },
            "data_flow": app.state.service.executor.data_flow.value,
        }

    @app.get("/health", tags=["Root"])
    async def health():
        """Health check endpoint."""
        service = app.state.service
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "workflows_count": len(service.workflows),
            "runs_count": len(service.runs),
            "is_running": service.is_running,
        }

    # ============================================================
    # Error Handlers
    # ============================================================

    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """Global exception handler for unhandled errors."""
        logger.exception(f"Unhandled error: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "detail": str(exc) if settings.DEBUG else "An unexpected error occurred",
            },
        )

    return app


app = create_app()
